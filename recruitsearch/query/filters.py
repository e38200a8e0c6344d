"""Filter-expression AST for the search capability's OData-style grammar.

Values are validated when a node is built, never at render time, so a
malformed value fails before any request leaves the process. A value that
contains a grammar control character is rejected with FilterValueError
rather than silently escaped or dropped.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from recruitsearch.core.errors import FilterValueError

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Quote, parentheses and backslash break out of a single-quoted literal.
FILTER_CONTROL_CHARS = frozenset("'\"()\\")
# search.ismatch() embeds a Lucene query; its operators are rejected too.
MATCH_CONTROL_CHARS = FILTER_CONTROL_CHARS | frozenset("*?:~^{}[]|&!+/")


def _check_field(name: str) -> str:
    if not _FIELD_NAME.match(name):
        msg = f"Invalid filter field name: {name!r}"
        raise FilterValueError(msg, details={"field": name})
    return name


def _check_value(field: str, value: object, forbidden: frozenset[str]) -> str:
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        msg = f"Filter value for '{field}' must be a string, got {type(value).__name__}"
        raise FilterValueError(msg, details={"field": field})
    text = value.strip()
    if not text:
        msg = f"Filter value for '{field}' must not be empty"
        raise FilterValueError(msg, details={"field": field})
    bad = sorted({ch for ch in text if ch in forbidden or ord(ch) < 32})
    if bad:
        msg = f"Filter value for '{field}' contains control characters: {''.join(bad)!r}"
        raise FilterValueError(msg, details={"field": field, "value": value})
    return text


class FilterExpr(ABC):
    """A node of the filter expression tree."""

    @abstractmethod
    def render(self) -> str:
        """Render the node in the search capability's filter grammar."""

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Eq(FilterExpr):
    """``field eq 'value'``"""

    field: str
    value: str

    def __post_init__(self) -> None:
        _check_field(self.field)
        object.__setattr__(self, "value", _check_value(self.field, self.value, FILTER_CONTROL_CHARS))

    def render(self) -> str:
        return f"{self.field} eq '{self.value}'"


@dataclass(frozen=True)
class AnyEq(FilterExpr):
    """Collection membership: ``field/any(s: s eq 'value')``"""

    field: str
    value: str

    def __post_init__(self) -> None:
        _check_field(self.field)
        object.__setattr__(self, "value", _check_value(self.field, self.value, FILTER_CONTROL_CHARS))

    def render(self) -> str:
        return f"{self.field}/any(s: s eq '{self.value}')"


@dataclass(frozen=True)
class IsMatch(FilterExpr):
    """Full-text predicate: ``search.ismatch('value', 'field')``"""

    field: str
    value: str

    def __post_init__(self) -> None:
        _check_field(self.field)
        object.__setattr__(self, "value", _check_value(self.field, self.value, MATCH_CONTROL_CHARS))

    def render(self) -> str:
        return f"search.ismatch('{self.value}', '{self.field}')"


@dataclass(frozen=True)
class DateGe(FilterExpr):
    """``field ge 2024-01-01T00:00:00Z``"""

    field: str
    value: datetime

    def __post_init__(self) -> None:
        _check_field(self.field)
        if not isinstance(self.value, datetime):
            msg = f"Filter value for '{self.field}' must be a datetime"
            raise FilterValueError(msg, details={"field": self.field})

    def render(self) -> str:
        value = self.value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        stamp = value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return f"{self.field} ge {stamp}"


@dataclass(frozen=True)
class AnyOf(FilterExpr):
    """Disjunction of alternatives within one category."""

    children: tuple[FilterExpr, ...]

    def render(self) -> str:
        if len(self.children) == 1:
            return self.children[0].render()
        return "(" + " or ".join(c.render() for c in self.children) + ")"


@dataclass(frozen=True)
class AllOf(FilterExpr):
    """Conjunction across categories."""

    children: tuple[FilterExpr, ...]

    def render(self) -> str:
        return " and ".join(c.render() for c in self.children)


def any_of(children: list[FilterExpr]) -> FilterExpr | None:
    if not children:
        return None
    return AnyOf(tuple(children))


def all_of(children: list[FilterExpr | None]) -> FilterExpr | None:
    present = tuple(c for c in children if c is not None)
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return AllOf(present)
