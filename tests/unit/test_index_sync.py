"""Tests for index initialization, document sync and drift reporting."""

from datetime import datetime, timezone

import pytest

from recruitsearch.core.errors import NotFoundError, SearchUnavailable
from recruitsearch.core.schemas import Availability, CandidateRecord, VisaStatus
from recruitsearch.pipeline.index_sync import IndexSynchronizer, build_search_document
from recruitsearch.resume.extractor import ExtractionResult
from recruitsearch.search.schema import INDEX_FIELDS


def _doc(candidate_id: str = "c1", **fields: object) -> dict[str, object]:
    doc: dict[str, object] = {"candidateId": candidate_id, "name": "Ada", "skills": ["Python"]}
    doc.update(fields)
    return doc


class TestBuildSearchDocument:
    def test_fields(self) -> None:
        record = CandidateRecord(
            candidate_id="c1",
            name="Ada",
            location="Austin, TX",
            visa_status=VisaStatus.CITIZEN,
            availability=Availability.TWO_WEEKS,
            skills=["Python"],
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        doc = build_search_document(record)
        assert doc["candidateId"] == "c1"
        assert doc["visaStatus"] == "Citizen"
        assert doc["availability"] == "TwoWeeks"
        assert doc["createdAt"] == "2024-01-01T00:00:00+00:00"
        assert set(doc) == {f["name"] for f in INDEX_FIELDS}

    def test_extraction_merged(self) -> None:
        record = CandidateRecord(candidate_id="c1", skills=["Python", "Go"])
        extraction = ExtractionResult(skills=["python", "Docker"], experience_summary="Built things")
        doc = build_search_document(record, "resume body", extraction)
        assert doc["skills"] == ["Python", "Go", "Docker"]
        assert doc["experienceSummary"] == "Built things"
        assert doc["resumeContent"] == "resume body"

    def test_stored_summary_wins(self) -> None:
        record = CandidateRecord(candidate_id="c1", experience_summary="Recruiter notes")
        doc = build_search_document(record, extraction=ExtractionResult(experience_summary="Extracted"))
        assert doc["experienceSummary"] == "Recruiter notes"

    def test_blank_enums(self) -> None:
        doc = build_search_document(CandidateRecord(candidate_id="c1"))
        assert doc["visaStatus"] == ""
        assert doc["availability"] == ""


class TestInitializeIndex:
    def test_created(self, backend) -> None:  # type: ignore[no-untyped-def]
        result = IndexSynchronizer(backend, "talent").initialize_index()
        assert result["action"] == "created"
        assert result["indexName"] == "talent"
        assert backend.definition["name"] == "talent"
        assert result["fieldsCount"] == len(INDEX_FIELDS)

    def test_unchanged_when_present(self, backend) -> None:  # type: ignore[no-untyped-def]
        backend.exists = True
        backend.documents["c1"] = _doc()
        result = IndexSynchronizer(backend).initialize_index()
        assert result["action"] == "unchanged"
        assert "c1" in backend.documents

    def test_force_recreates(self, backend) -> None:  # type: ignore[no-untyped-def]
        backend.exists = True
        backend.documents["c1"] = _doc()
        result = IndexSynchronizer(backend).initialize_index(force=True)
        assert result["action"] == "recreated"
        assert backend.documents == {}
        assert backend.exists


class TestIndexInfo:
    def test_missing_index(self, backend) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(NotFoundError, match="Initialize the search index"):
            IndexSynchronizer(backend).index_info()

    def test_counts(self, backend) -> None:  # type: ignore[no-untyped-def]
        backend.exists = True
        backend.documents["c1"] = _doc()
        info = IndexSynchronizer(backend).index_info()
        assert info["documentCount"] == 1
        assert {"name": "candidateId", "type": "Edm.String"} in info["fields"]


class TestHealth:
    def test_healthy(self, backend) -> None:  # type: ignore[no-untyped-def]
        health = IndexSynchronizer(backend).health()
        assert health["status"] == "healthy"
        assert health["candidatesIndex"]["exists"] is False

    def test_unhealthy(self, backend) -> None:  # type: ignore[no-untyped-def]
        backend.fail_with = SearchUnavailable("connection refused")
        health = IndexSynchronizer(backend).health()
        assert health["status"] == "unhealthy"
        assert "connection refused" in health["detail"]


class TestSync:
    def test_success(self, backend) -> None:  # type: ignore[no-untyped-def]
        report = IndexSynchronizer(backend).sync([_doc("c1"), _doc("c2")])
        assert report.attempted == 2
        assert report.succeeded == 2
        assert report.failed == 0
        assert set(backend.documents) == {"c1", "c2"}

    def test_idempotent_merge(self, backend) -> None:  # type: ignore[no-untyped-def]
        sync = IndexSynchronizer(backend)
        sync.sync([_doc("c1", skills=["Python", "python"])])
        first = dict(backend.documents)
        report = sync.sync([_doc("c1", skills=["Python", "python"])])
        assert report.succeeded == 1
        assert backend.documents == first
        assert backend.documents["c1"]["skills"] == ["Python"]

    def test_merge_keeps_untouched_fields(self, backend) -> None:  # type: ignore[no-untyped-def]
        sync = IndexSynchronizer(backend)
        sync.sync([_doc("c1", location="Austin")])
        sync.sync([{"candidateId": "c1", "skills": ["Go"]}])
        assert backend.documents["c1"]["location"] == "Austin"
        assert backend.documents["c1"]["skills"] == ["Go"]

    def test_invalid_documents_reported(self, backend) -> None:  # type: ignore[no-untyped-def]
        report = IndexSynchronizer(backend).sync([
            _doc("c1"),
            {"name": "no id"},
            _doc("c3", skills="Python"),
        ])
        assert report.succeeded == 1
        assert report.failed == 2
        assert report.errors[0].error_message == "candidateId is required"
        assert report.errors[1].key == "c3"
        assert backend.write_batches == [[_doc("c1")]]

    def test_backend_rejection_collected(self, backend) -> None:  # type: ignore[no-untyped-def]
        backend.reject_keys = {"c2"}
        report = IndexSynchronizer(backend).sync([_doc("c1"), _doc("c2")])
        assert report.succeeded == 1
        assert report.failed == 1
        assert report.errors[0].key == "c2"

    def test_empty(self, backend) -> None:  # type: ignore[no-untyped-def]
        report = IndexSynchronizer(backend).sync([])
        assert report.attempted == 0
        assert backend.write_batches == []


class TestRemove:
    def test_remove(self, backend) -> None:  # type: ignore[no-untyped-def]
        sync = IndexSynchronizer(backend)
        sync.sync([_doc("c1"), _doc("c2")])
        report = sync.remove(["c1", ""])
        assert report.succeeded == 1
        assert report.failed == 1
        assert set(backend.documents) == {"c2"}


class TestDrift:
    def test_stats(self, backend, repository) -> None:  # type: ignore[no-untyped-def]
        repository.save(CandidateRecord(candidate_id="a", resume_file_name="a.pdf", resume_content="text"))
        repository.save(CandidateRecord(candidate_id="b", resume_file_name="b.pdf"))
        repository.save(CandidateRecord(candidate_id="c"))
        backend.documents["a"] = _doc("a")

        stats = IndexSynchronizer(backend).drift(repository)
        assert stats.total_candidates == 3
        assert stats.candidates_with_resumes == 2
        assert stats.processed_resumes == 1
        assert stats.unprocessed_resumes == 1
        assert stats.processing_rate == 50.0
        assert stats.needs_processing is True
        assert stats.document_count == 1
        assert stats.unsynced_count == 2

    def test_empty_store(self, backend, repository) -> None:  # type: ignore[no-untyped-def]
        stats = IndexSynchronizer(backend).drift(repository)
        assert stats.processing_rate == 0.0
        assert stats.needs_processing is False
