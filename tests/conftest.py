"""Shared fakes: an in-memory search backend and a list-backed event sink."""

import json
from pathlib import Path
from typing import Any

import pytest

from recruitsearch.analytics.sink import EventSink
from recruitsearch.core.schemas import AnalyticsEvent, IndexingResult
from recruitsearch.search.backend import (
    IndexStatistics,
    SearchBackend,
    SearchHit,
    SearchOptions,
    SearchResponse,
)
from recruitsearch.storage.blob import CandidateRepository, LocalDocumentStore


class InMemorySearchBackend(SearchBackend):
    """Stores documents in a dict and records every search call.

    ``search`` returns ``canned`` when set, otherwise every stored document
    with score 1.0 (filters are not evaluated).
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.exists = False
        self.definition: dict[str, Any] | None = None
        self.canned: SearchResponse | None = None
        self.fail_with: Exception | None = None
        self.reject_keys: set[str] = set()
        self.calls: list[tuple[str, SearchOptions]] = []
        self.write_batches: list[list[dict[str, Any]]] = []

    @property
    def backend_id(self) -> str:
        return "memory"

    def search(self, query_text: str, options: SearchOptions) -> SearchResponse:
        self.calls.append((query_text, options))
        if self.fail_with is not None:
            raise self.fail_with
        if self.canned is not None:
            return self.canned
        hits = [SearchHit(document=dict(d), score=1.0) for d in self.documents.values()]
        return SearchResponse(results=hits[options.skip:options.skip + options.top], count=len(hits))

    def merge_or_upload(self, documents: list[dict[str, Any]]) -> list[IndexingResult]:
        self.write_batches.append(documents)
        results = []
        for doc in documents:
            key = doc["candidateId"]
            if key in self.reject_keys:
                results.append(IndexingResult(key=key, succeeded=False, error_message="rejected"))
                continue
            self.documents[key] = {**self.documents.get(key, {}), **doc}
            results.append(IndexingResult(key=key, succeeded=True))
        return results

    def delete(self, keys: list[str]) -> list[IndexingResult]:
        for key in keys:
            self.documents.pop(key, None)
        return [IndexingResult(key=k, succeeded=True) for k in keys]

    def get_statistics(self) -> IndexStatistics:
        size = sum(len(json.dumps(d, default=str)) for d in self.documents.values())
        return IndexStatistics(document_count=len(self.documents), storage_size=size)

    def index_exists(self) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        return self.exists

    def create_index(self, definition: dict[str, Any]) -> None:
        self.definition = definition
        self.exists = True

    def delete_index(self) -> None:
        self.exists = False
        self.documents.clear()


class ListEventSink(EventSink):
    def __init__(self) -> None:
        self.events: list[AnalyticsEvent] = []

    def append(self, event: AnalyticsEvent) -> None:
        self.events.append(event)


class FailingEventSink(EventSink):
    def append(self, event: AnalyticsEvent) -> None:
        msg = "disk full"
        raise OSError(msg)


@pytest.fixture()
def backend() -> InMemorySearchBackend:
    return InMemorySearchBackend()


@pytest.fixture()
def sink() -> ListEventSink:
    return ListEventSink()


@pytest.fixture()
def repository(tmp_path: Path) -> CandidateRepository:
    return CandidateRepository(LocalDocumentStore(tmp_path / "store"))


@pytest.fixture()
def failing_sink() -> FailingEventSink:
    return FailingEventSink()
