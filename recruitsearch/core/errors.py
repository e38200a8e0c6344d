"""Error taxonomy shared by every component.

Each error carries a machine-readable ``code`` and the HTTP-style ``status``
the JSON surface should answer with.
"""

from datetime import datetime, timezone
from typing import Any


class RecruitSearchError(Exception):
    """Base exception for all recruitsearch errors."""

    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        }


class ValidationError(RecruitSearchError):
    """Raised for malformed or missing request input. Never retried."""

    code = "VALIDATION_ERROR"
    status = 400


class FilterValueError(ValidationError):
    """Raised when a filter value contains a filter-grammar control character."""

    code = "INVALID_FILTER_VALUE"


class NotFoundError(RecruitSearchError):
    """Raised when a stored record or resume does not exist."""

    code = "NOT_FOUND"
    status = 404


class ExternalServiceError(RecruitSearchError):
    """Raised when the search or generative capability errors."""

    code = "EXTERNAL_SERVICE_ERROR"
    status = 502


class SearchUnavailable(ExternalServiceError):
    """Raised when the search capability is unreachable, fails, or times out."""

    code = "SEARCH_UNAVAILABLE"
    status = 503


class GenerativeServiceError(ExternalServiceError):
    """Raised when the generative-text capability call fails."""

    code = "GENERATIVE_SERVICE_ERROR"


class SchemaValidationError(RecruitSearchError):
    """Raised when generative output is not JSON or misses required fields."""

    code = "SCHEMA_VALIDATION_ERROR"
    status = 422


class TextExtractionError(RecruitSearchError):
    """Raised when resume bytes cannot be turned into text."""

    code = "TEXT_EXTRACTION_ERROR"
    status = 422


def error_payload(exc: BaseException) -> tuple[int, dict[str, Any]]:
    """Map any exception to ``(status, {"error": {...}})``."""
    if isinstance(exc, RecruitSearchError):
        return exc.status, exc.to_dict()
    wrapped = RecruitSearchError(str(exc) or exc.__class__.__name__)
    return wrapped.status, wrapped.to_dict()
