"""Abstract interface for the external search capability."""

import importlib
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from recruitsearch.core.config import SearchBackendConfig
from recruitsearch.core.schemas import IndexingResult


class SearchOptions(BaseModel):
    """Per-request options passed through to the search capability."""

    model_config = ConfigDict(frozen=True)

    filter: str | None = None
    facets: tuple[str, ...] = ()
    top: int = Field(default=20, ge=0)
    skip: int = Field(default=0, ge=0)
    select: tuple[str, ...] = ()
    order_by: tuple[str, ...] = ()
    query_type: str = "simple"
    search_mode: str = "any"
    include_total_count: bool = True
    highlight_fields: tuple[str, ...] = ()


class SearchHit(BaseModel):
    """One scored document returned by the search capability."""

    model_config = ConfigDict(frozen=True)

    document: dict[str, Any]
    score: float = 0.0
    highlights: dict[str, list[str]] = Field(default_factory=dict)
    captions: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Full response of one search call."""

    results: list[SearchHit] = Field(default_factory=list)
    count: int = 0
    facets: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    answers: list[str] = Field(default_factory=list)


class IndexStatistics(BaseModel):
    document_count: int = 0
    storage_size: int = 0


class SearchBackend(ABC):
    """Base class that every search capability adapter must implement.

    Implementations raise ``SearchUnavailable`` when the service cannot be
    reached or answers with an error.
    """

    @property
    @abstractmethod
    def backend_id(self) -> str:
        """Unique identifier for this backend (e.g. 'azure')."""

    @abstractmethod
    def search(self, query_text: str, options: SearchOptions) -> SearchResponse:
        """Run a query and return scored documents, count and facets."""

    @abstractmethod
    def merge_or_upload(self, documents: list[dict[str, Any]]) -> list[IndexingResult]:
        """Upsert documents by key. Re-sending an unchanged document is a no-op."""

    @abstractmethod
    def delete(self, keys: list[str]) -> list[IndexingResult]:
        """Delete documents by key."""

    @abstractmethod
    def get_statistics(self) -> IndexStatistics:
        """Document count and storage size of the index."""

    @abstractmethod
    def index_exists(self) -> bool:
        """Return True when the index has been created."""

    @abstractmethod
    def create_index(self, definition: dict[str, Any]) -> None:
        """Create the index from a definition."""

    @abstractmethod
    def delete_index(self) -> None:
        """Drop the index."""


# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "azure": ("recruitsearch.search.azure", "AzureSearchBackend"),
}


def get_backend(config: SearchBackendConfig) -> SearchBackend:
    """Instantiate the configured search backend.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if config.provider not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown search provider '{config.provider}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[config.provider]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(config)  # type: ignore[no-any-return]
