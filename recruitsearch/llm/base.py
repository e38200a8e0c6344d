"""Abstract base class for generative-text providers and output validation."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from recruitsearch.core.errors import SchemaValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Task-specific callers pass their own system prompt.
DEFAULT_SYSTEM_PROMPT = "Respond with a single valid JSON object and nothing else."

DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.1


def parse_json_text(raw_text: str) -> dict[str, Any]:
    """Parse a provider response into a JSON object.

    Handles markdown-wrapped JSON (```json ... ```), plain JSON, and JSON
    surrounded by prose, in which case the outermost ``{...}`` span is used.
    """
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", (raw_text or "").strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            msg = f"Failed to parse generative response as JSON: {e}"
            raise ValueError(msg) from e
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as inner:
            msg = f"Failed to parse generative response as JSON: {inner}"
            raise ValueError(msg) from inner

    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data


class SchemaResult(Generic[ModelT]):
    """Tagged outcome of validating generative output: ok + data, or a reason."""

    def __init__(self, data: ModelT | None = None, reason: str = "") -> None:
        self.data = data
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.data is not None

    def unwrap(self) -> ModelT:
        if self.data is None:
            raise SchemaValidationError(self.reason or "Generative output failed validation")
        return self.data

    def __repr__(self) -> str:
        if self.ok:
            return f"SchemaResult(ok, {type(self.data).__name__})"
        return f"SchemaResult(error, {self.reason!r})"


def validate_output(raw_text: str, model: type[ModelT]) -> SchemaResult[ModelT]:
    """Parse and validate untrusted provider text against a pydantic schema.

    Never raises: a parse failure or a missing required field becomes a
    SchemaResult carrying the reason.
    """
    try:
        data = parse_json_text(raw_text)
    except ValueError as e:
        return SchemaResult(reason=str(e))
    try:
        return SchemaResult(data=model.model_validate(data))
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        return SchemaResult(reason=f"Schema validation failed: {problems}")


class LLMProvider(ABC):
    """Base class that every generative-text provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @abstractmethod
    def complete(
        self,
        user_prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send a prompt to the model and return the raw response text.

        Args:
            user_prompt: The user message, typically resume text plus instructions.
            model: Override the provider's default model. None uses default.
            system: Override the system prompt. None falls back to DEFAULT_SYSTEM_PROMPT.
            max_tokens: Response token budget. None uses DEFAULT_MAX_TOKENS.
            temperature: Sampling temperature. None uses DEFAULT_TEMPERATURE.

        Returns:
            Raw, untrusted text response (expected to be JSON).
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

