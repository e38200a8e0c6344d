"""Turn a ParsedIntent, explicit filters, or a job into a search request.

Skills always go into the query text as an OR-combination so partial
matches still surface; location, availability and visa status become hard
filter clauses (AND across categories, OR within one).
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from recruitsearch.core.errors import ValidationError
from recruitsearch.core.schemas import JobDescription, ParsedIntent, StructuredFilters
from recruitsearch.query.filters import (
    DateGe,
    Eq,
    FilterExpr,
    IsMatch,
    all_of,
    any_of,
)
from recruitsearch.search.schema import SEARCH_PROFILES, SORTABLE_FIELDS

MATCH_ALL = "*"

_PLAIN_TERM = re.compile(r"^\w+$")


@dataclass(frozen=True)
class BuiltQuery:
    """Query text, filter tree and facet list for one search call."""

    query_text: str = MATCH_ALL
    filter: FilterExpr | None = None
    facets: tuple[str, ...] = ()
    order_by: tuple[str, ...] = field(default=())

    @property
    def filter_text(self) -> str | None:
        return self.filter.render() if self.filter is not None else None

    @property
    def is_match_all(self) -> bool:
        return self.query_text == MATCH_ALL and self.filter is None


def _term(skill: str) -> str:
    """Quote a skill term when it carries query-syntax characters (C#, C++, CI/CD)."""
    cleaned = skill.strip().replace('"', "")
    if _PLAIN_TERM.match(cleaned):
        return cleaned
    return f'"{cleaned}"'


def skills_clause(skills: list[str]) -> str:
    terms = [_term(s) for s in skills if s.strip()]
    return " OR ".join(terms)


def _location_filter(locations: list[str]) -> FilterExpr | None:
    return any_of([IsMatch("location", loc) for loc in locations])


def _enum_filter(field_name: str, values: Sequence[str]) -> FilterExpr | None:
    return any_of([Eq(field_name, v) for v in values])


def build_from_intent(intent: ParsedIntent, mode: str = "natural-language") -> BuiltQuery:
    """Build a search request from an interpreted free-text query.

    An intent with no entities yields the match-all query with no filter.
    """
    facets = tuple(SEARCH_PROFILES.get(mode, SEARCH_PROFILES["general"])["facets"])
    parts: list[str] = []
    if intent.skills:
        clause = skills_clause(intent.skills)
        parts.append(f"({clause})" if len(intent.skills) > 1 and intent.experience_terms else clause)
    if intent.experience_terms:
        parts.append(" ".join(intent.experience_terms))
    query_text = " AND ".join(parts) if parts else MATCH_ALL

    expr = all_of([
        _location_filter(intent.locations),
        _enum_filter("availability", intent.availability),
        _enum_filter("visaStatus", intent.visa_status),
    ])
    return BuiltQuery(query_text=query_text, filter=expr, facets=facets)


def build_from_filters(
    filters: StructuredFilters,
    text: str = MATCH_ALL,
    mode: str = "general",
    sort_by: str | None = None,
    sort_order: str = "asc",
) -> BuiltQuery:
    """Build a search request from explicit structured filters."""
    facets = tuple(SEARCH_PROFILES.get(mode, SEARCH_PROFILES["general"])["facets"])
    base = (text or "").strip() or MATCH_ALL

    query_text = base
    if filters.skills:
        clause = skills_clause(filters.skills)
        if base == MATCH_ALL:
            query_text = clause
        else:
            query_text = f"({base}) AND ({clause})"

    location = filters.location.strip()
    expr = all_of([
        _location_filter([location]) if location else None,
        _enum_filter("visaStatus", filters.visa_status),
        _enum_filter("availability", filters.availability),
        DateGe("createdAt", filters.created_after) if filters.created_after else None,
        DateGe("updatedAt", filters.updated_after) if filters.updated_after else None,
    ])
    return BuiltQuery(
        query_text=query_text,
        filter=expr,
        facets=facets,
        order_by=build_order_by(sort_by, sort_order),
    )


def build_job_query(job: JobDescription) -> BuiltQuery:
    """Semantic query text and hard filters for job matching."""
    parts = [job.title, job.description]
    if job.required_skills:
        parts.append(f"Required skills: {', '.join(job.required_skills)}")
    if job.experience_level:
        parts.append(f"Experience level: {job.experience_level}")

    location = job.location.strip()
    expr = all_of([
        _location_filter([location]) if location else None,
        Eq("visaStatus", job.visa_requirement) if job.visa_requirement else None,
    ])
    return BuiltQuery(
        query_text=". ".join(p.strip().rstrip(".") for p in parts),
        filter=expr,
        facets=tuple(SEARCH_PROFILES["job-match"]["facets"]),
    )


def build_order_by(sort_by: str | None, sort_order: str = "asc") -> tuple[str, ...]:
    """Map a public sort key to an order-by clause. ``relevance`` is the default."""
    if not sort_by or sort_by == "relevance":
        return ()
    order = sort_order.strip().lower()
    if order not in ("asc", "desc"):
        msg = f"sortOrder must be 'asc' or 'desc', got '{sort_order}'"
        raise ValidationError(msg)
    if sort_by not in SORTABLE_FIELDS:
        valid = ", ".join(["relevance", *sorted(SORTABLE_FIELDS)])
        msg = f"Unknown sortBy '{sort_by}'. Available: {valid}"
        raise ValidationError(msg)
    return (f"{SORTABLE_FIELDS[sort_by]} {order}",)
