"""Azure AI Search adapter (azure-search-documents SDK)."""

import logging
import os
from typing import Any

from recruitsearch.core.config import SearchBackendConfig
from recruitsearch.core.errors import SearchUnavailable
from recruitsearch.core.schemas import IndexingResult
from recruitsearch.search.backend import (
    IndexStatistics,
    SearchBackend,
    SearchHit,
    SearchOptions,
    SearchResponse,
)
from recruitsearch.search.schema import KEY_FIELD

logger = logging.getLogger(__name__)

SEMANTIC_CONFIGURATION = "default"


class AzureSearchBackend(SearchBackend):
    """Search capability backed by an Azure AI Search index.

    The endpoint comes from config or ``AZURE_SEARCH_ENDPOINT``; the key from
    the environment variable named by ``config.api_key_env``.
    """

    def __init__(self, config: SearchBackendConfig) -> None:
        endpoint = config.endpoint or os.environ.get("AZURE_SEARCH_ENDPOINT", "")
        api_key = os.environ.get(config.api_key_env)
        if not endpoint or not api_key:
            msg = f"Search endpoint and {config.api_key_env} environment variable are required"
            raise ValueError(msg)

        try:
            from azure.core.credentials import AzureKeyCredential
            from azure.search.documents import SearchClient
            from azure.search.documents.indexes import SearchIndexClient
        except ImportError:
            msg = (
                "azure-search-documents is required for the Azure search backend. "
                "Install with: pip install 'recruitsearch[azure]'"
            )
            raise ImportError(msg) from None

        credential = AzureKeyCredential(api_key)
        timeouts = {
            "connection_timeout": config.timeout_seconds,
            "read_timeout": config.timeout_seconds,
        }
        self.index_name = config.index_name
        self._client = SearchClient(endpoint, config.index_name, credential, **timeouts)
        self._index_client = SearchIndexClient(endpoint, credential, **timeouts)

    @property
    def backend_id(self) -> str:
        return "azure"

    def _call(self, operation: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        from azure.core.exceptions import AzureError

        try:
            return fn(*args, **kwargs)
        except AzureError as e:
            msg = f"Azure search {operation} failed: {e}"
            logger.error(msg)
            raise SearchUnavailable(msg, details={"operation": operation}) from e

    def search(self, query_text: str, options: SearchOptions) -> SearchResponse:
        kwargs: dict[str, Any] = {
            "search_text": query_text,
            "filter": options.filter,
            "facets": list(options.facets) or None,
            "top": options.top,
            "skip": options.skip,
            "select": list(options.select) or None,
            "order_by": list(options.order_by) or None,
            "search_mode": options.search_mode,
            "include_total_count": options.include_total_count,
        }
        if options.highlight_fields:
            kwargs["highlight_fields"] = ",".join(options.highlight_fields)
        if options.query_type == "semantic":
            kwargs.update(
                query_type="semantic",
                semantic_configuration_name=SEMANTIC_CONFIGURATION,
                query_caption="extractive",
                query_answer="extractive",
            )
        else:
            kwargs["query_type"] = options.query_type

        def run() -> SearchResponse:
            results = self._client.search(**kwargs)
            hits: list[SearchHit] = []
            for item in results:
                doc = dict(item)
                score = doc.pop("@search.score", 0.0) or 0.0
                highlights = doc.pop("@search.highlights", None) or {}
                captions = doc.pop("@search.captions", None) or []
                hits.append(SearchHit(
                    document={k: v for k, v in doc.items() if not k.startswith("@")},
                    score=float(score),
                    highlights=dict(highlights),
                    captions=[getattr(c, "text", str(c)) for c in captions],
                ))
            answers = results.get_answers() if options.query_type == "semantic" else None
            return SearchResponse(
                results=hits,
                count=results.get_count() or 0,
                facets=results.get_facets() or {},
                answers=[getattr(a, "text", str(a)) for a in answers or []],
            )

        return self._call("search", run)  # type: ignore[no-any-return]

    def merge_or_upload(self, documents: list[dict[str, Any]]) -> list[IndexingResult]:
        raw = self._call("merge_or_upload", self._client.merge_or_upload_documents, documents=documents)
        return [
            IndexingResult(key=r.key, succeeded=r.succeeded, error_message=r.error_message or "")
            for r in raw
        ]

    def delete(self, keys: list[str]) -> list[IndexingResult]:
        raw = self._call(
            "delete", self._client.delete_documents, documents=[{KEY_FIELD: k} for k in keys],
        )
        return [
            IndexingResult(key=r.key, succeeded=r.succeeded, error_message=r.error_message or "")
            for r in raw
        ]

    def get_statistics(self) -> IndexStatistics:
        stats = self._call("statistics", self._index_client.get_index_statistics, self.index_name)
        return IndexStatistics(
            document_count=stats.get("document_count", 0),
            storage_size=stats.get("storage_size", 0),
        )

    def index_exists(self) -> bool:
        from azure.core.exceptions import ResourceNotFoundError

        try:
            self._call("get_index", self._index_client.get_index, self.index_name)
        except SearchUnavailable as e:
            if isinstance(e.__cause__, ResourceNotFoundError):
                return False
            raise
        return True

    def create_index(self, definition: dict[str, Any]) -> None:
        self._call("create_index", self._index_client.create_index, _to_search_index(definition))
        logger.info("Created index %s", definition["name"])

    def delete_index(self) -> None:
        self._call("delete_index", self._index_client.delete_index, self.index_name)
        logger.info("Deleted index %s", self.index_name)


def _to_search_index(definition: dict[str, Any]) -> Any:
    """Translate the backend-neutral definition into SDK models."""
    from azure.search.documents.indexes.models import (
        ScoringProfile,
        SearchField,
        SearchIndex,
        SearchSuggester,
        SemanticConfiguration,
        SemanticField,
        SemanticPrioritizedFields,
        SemanticSearch,
        TextWeights,
    )

    fields = [
        SearchField(
            name=f["name"],
            type=f["type"],
            key=f["key"],
            searchable=f["searchable"],
            filterable=f["filterable"],
            sortable=f["sortable"],
            facetable=f["facetable"],
        )
        for f in definition["fields"]
    ]
    profiles = [
        ScoringProfile(name=p["name"], text_weights=TextWeights(weights=p["text_weights"]))
        for p in definition.get("scoring_profiles", [])
    ]
    suggesters = [
        SearchSuggester(name=s["name"], source_fields=s["source_fields"])
        for s in definition.get("suggesters", [])
    ]
    semantic = SemanticSearch(configurations=[
        SemanticConfiguration(
            name=SEMANTIC_CONFIGURATION,
            prioritized_fields=SemanticPrioritizedFields(
                title_field=SemanticField(field_name="name"),
                content_fields=[
                    SemanticField(field_name="experienceSummary"),
                    SemanticField(field_name="resumeContent"),
                ],
                keywords_fields=[SemanticField(field_name="skills")],
            ),
        ),
    ])
    return SearchIndex(
        name=definition["name"],
        fields=fields,
        scoring_profiles=profiles,
        suggesters=suggesters,
        semantic_search=semantic,
    )
