"""Configuration models and YAML loader for the candidate search service."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

MAX_BATCH_CONCURRENCY = 50


class DatabaseConfig(BaseModel):
    """SQLite file holding the analytics log and batch audit records."""

    path: str = "data/recruitsearch.db"


class StorageConfig(BaseModel):
    """Local document store layout."""

    root: str = "data/store"
    candidates_container: str = "candidates"
    resumes_container: str = "resumes"


class SearchBackendConfig(BaseModel):
    """Connection settings for the external search capability."""

    provider: str = "azure"
    endpoint: str = ""
    index_name: str = "candidates-index"
    api_key_env: str = "AZURE_SEARCH_API_KEY"
    default_top: int = Field(default=20, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=1000)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class ScoringConfig(BaseModel):
    """Weights for combining semantic relevance with skill overlap."""

    required_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    preferred_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    semantic_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    skill_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    skill_aliases: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringConfig":
        if abs(self.required_weight + self.preferred_weight - 1.0) > 1e-6:
            msg = "required_weight + preferred_weight must equal 1.0"
            raise ValueError(msg)
        if abs(self.semantic_weight + self.skill_weight - 1.0) > 1e-6:
            msg = "semantic_weight + skill_weight must equal 1.0"
            raise ValueError(msg)
        return self


class BatchConfig(BaseModel):
    """Bounded-concurrency settings for batch resume processing."""

    max_concurrency: int = Field(default=10, ge=1, le=MAX_BATCH_CONCURRENCY)
    inter_chunk_delay_seconds: float = Field(default=0.2, ge=0.0)
    max_resumes: int = Field(default=100, ge=1)


class LLMConfig(BaseModel):
    """Generative extraction settings."""

    enabled: bool = False
    provider: str = "anthropic"
    model: str | None = None
    max_tokens: int = Field(default=2000, ge=1)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    @field_validator("provider")
    @classmethod
    def provider_normalised(cls, v: str) -> str:
        return v.strip().lower()


class AnalyticsConfig(BaseModel):
    """Query event logging and trend settings."""

    enabled: bool = True
    trend_top_n: int = Field(default=15, ge=1)
    location_top_n: int = Field(default=10, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    search: SearchBackendConfig = Field(default_factory=SearchBackendConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
