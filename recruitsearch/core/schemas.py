"""Core data models for candidate search and index synchronization."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def dedupe_skills(skills: list[str]) -> list[str]:
    """Drop blank and case-insensitive duplicate skills, keeping first spelling."""
    seen: set[str] = set()
    result: list[str] = []
    for skill in skills:
        cleaned = skill.strip()
        key = cleaned.lower()
        if cleaned and key not in seen:
            seen.add(key)
            result.append(cleaned)
    return result


class VisaStatus(str, Enum):
    CITIZEN = "Citizen"
    GREEN_CARD = "GreenCard"
    H1B = "H1B"
    F1_OPT = "F1OPT"
    REQUIRES_SPONSORSHIP = "RequiresSponsorship"


class Availability(str, Enum):
    IMMEDIATE = "Immediate"
    TWO_WEEKS = "TwoWeeks"
    ONE_MONTH = "OneMonth"
    NOT_AVAILABLE = "NotAvailable"


class SearchMode(str, Enum):
    GENERAL = "general"
    JOB_MATCH = "job-match"
    SEMANTIC = "semantic"
    NATURAL_LANGUAGE = "natural-language"


class Intent(str, Enum):
    CANDIDATE_SEARCH = "candidate-search"
    JOB_MATCHING = "job-matching"
    RECRUITMENT = "recruitment"
    GENERAL = "general-search"


class CandidateRecord(BaseModel):
    """A stored candidate.

    Frozen: identity never changes after creation. Updates go through
    ``model_copy(update=...)`` which keeps ``candidate_id``.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
    )

    candidate_id: str = Field(min_length=1)
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    visa_status: VisaStatus | None = None
    availability: Availability | None = None
    experience_summary: str = ""
    skills: list[str] = Field(default_factory=list)
    resume_file_name: str = ""
    resume_content: str = ""
    extracted_skills: list[str] = Field(default_factory=list)
    extracted_experience: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("skills", "extracted_skills")
    @classmethod
    def skills_unique(cls, v: list[str]) -> list[str]:
        return dedupe_skills(v)

    @field_validator("visa_status", "availability", mode="before")
    @classmethod
    def blank_enum_is_none(cls, v: Any) -> Any:
        return v or None


class ParsedIntent(BaseModel):
    """Entities and coarse intent extracted from one free-text query."""

    model_config = ConfigDict(frozen=True)

    skills: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    experience_terms: list[str] = Field(default_factory=list)
    availability: list[Availability] = Field(default_factory=list)
    visa_status: list[VisaStatus] = Field(default_factory=list)
    intent: Intent = Intent.GENERAL

    @property
    def is_empty(self) -> bool:
        return not (
            self.skills or self.locations or self.experience_terms
            or self.availability or self.visa_status
        )


class StructuredFilters(BaseModel):
    """Explicit filters supplied by the caller instead of free text."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    skills: list[str] = Field(default_factory=list)
    location: str = ""
    visa_status: list[VisaStatus] = Field(default_factory=list)
    availability: list[Availability] = Field(default_factory=list)
    created_after: datetime | None = None
    updated_after: datetime | None = None

    def applied(self) -> dict[str, Any]:
        """Return only the filters that are set, JSON-ready."""
        return self.model_dump(mode="json", by_alias=True, exclude_defaults=True)


class JobDescription(BaseModel):
    """A job to match candidates against."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    description: str
    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_level: str = ""
    location: str = ""
    visa_requirement: VisaStatus | None = None
    max_results: int = Field(default=20, ge=1, le=50)

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()


class MatchResult(BaseModel):
    """One ranked candidate with its component scores."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    document: dict[str, Any] = Field(default_factory=dict)
    semantic_score: float = 0.0
    skill_score: float = Field(default=0.0, ge=0.0, le=1.0)
    overall_score: float = 0.0
    matched_skills: list[str] = Field(default_factory=list)
    required_matched: list[str] = Field(default_factory=list)
    preferred_matched: list[str] = Field(default_factory=list)
    highlights: dict[str, list[str]] = Field(default_factory=dict)
    captions: list[str] = Field(default_factory=list)


class BatchItem(BaseModel):
    """One candidate queued for resume extraction."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str = Field(min_length=1)
    resume_reference: str = Field(min_length=1)


class ItemStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class BatchItemOutcome(BaseModel):
    """Resolution of a single batch item. Each item resolves exactly once."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    status: ItemStatus
    reason: str = ""
    error_code: str = ""
    skills: list[str] = Field(default_factory=list)


class AnalyticsEvent(BaseModel):
    """A logged query. Append-only: never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    query: str
    search_type: str
    filters: dict[str, Any] = Field(default_factory=dict)
    result_count: int = Field(default=0, ge=0)
    user_id: str = "anonymous"
    session_id: str = Field(default_factory=lambda: f"session_{uuid.uuid4().hex[:12]}")
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("query", "search_type")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, v: datetime) -> datetime:
        # Stored timestamps are compared as ISO strings, so all must be UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def query_length(self) -> int:
        return len(self.query)

    @property
    def has_filters(self) -> bool:
        return bool(self.filters)


class IndexingResult(BaseModel):
    """Per-document outcome of an index write."""

    model_config = ConfigDict(frozen=True)

    key: str
    succeeded: bool
    error_message: str = ""


class SyncReport(BaseModel):
    """Outcome of one bulk index write."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[IndexingResult] = Field(default_factory=list)


class DriftStats(BaseModel):
    """Discrepancy between the document store and the search index."""

    total_candidates: int = 0
    candidates_with_resumes: int = 0
    processed_resumes: int = 0
    unprocessed_resumes: int = 0
    processing_rate: float = 0.0
    needs_processing: bool = False
    document_count: int = 0
    storage_size: int = 0
    unsynced_count: int = 0
    timestamp: datetime = Field(default_factory=_utcnow)
