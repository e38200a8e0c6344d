"""Keep the search index in step with stored candidate records."""

import logging
from datetime import datetime, timezone
from typing import Any

from recruitsearch.core.errors import NotFoundError, SearchUnavailable
from recruitsearch.core.schemas import (
    CandidateRecord,
    DriftStats,
    IndexingResult,
    SyncReport,
    dedupe_skills,
)
from recruitsearch.resume.extractor import ExtractionResult
from recruitsearch.search.backend import SearchBackend
from recruitsearch.search.schema import CANDIDATES_INDEX_NAME, KEY_FIELD, index_definition
from recruitsearch.storage.blob import CandidateRepository

logger = logging.getLogger(__name__)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def build_search_document(
    record: CandidateRecord,
    resume_text: str = "",
    extraction: ExtractionResult | None = None,
) -> dict[str, Any]:
    """Index document for a candidate.

    Stored and extracted skills are merged case-insensitively; a stored
    experience summary wins over an extracted one.
    """
    extracted_skills = extraction.skills if extraction else record.extracted_skills
    extracted_summary = extraction.experience_summary if extraction else record.extracted_experience
    return {
        KEY_FIELD: record.candidate_id,
        "name": record.name,
        "email": record.email,
        "phone": record.phone,
        "location": record.location,
        "visaStatus": record.visa_status.value if record.visa_status else "",
        "availability": record.availability.value if record.availability else "",
        "skills": dedupe_skills([*record.skills, *extracted_skills]),
        "experienceSummary": record.experience_summary or extracted_summary,
        "resumeFileName": record.resume_file_name,
        "resumeContent": resume_text or record.resume_content,
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
    }


def _validate_document(doc: dict[str, Any]) -> str | None:
    """Return a reason when the document cannot be indexed, else None."""
    key = doc.get(KEY_FIELD)
    if not isinstance(key, str) or not key.strip():
        return f"{KEY_FIELD} is required"
    skills = doc.get("skills", [])
    if not isinstance(skills, list) or not all(isinstance(s, str) for s in skills):
        return "skills must be a list of strings"
    return None


class IndexSynchronizer:
    """Merge-or-upload, delete and drift reporting against one index."""

    def __init__(self, backend: SearchBackend, index_name: str = CANDIDATES_INDEX_NAME) -> None:
        self.backend = backend
        self.index_name = index_name

    def initialize_index(self, force: bool = False) -> dict[str, Any]:
        """Create the index when absent; drop and recreate it when ``force``."""
        definition = index_definition(self.index_name)
        exists = self.backend.index_exists()
        if exists and force:
            logger.info("Recreating index %s", self.index_name)
            self.backend.delete_index()
            self.backend.create_index(definition)
            action = "recreated"
        elif exists:
            logger.info("Index %s already exists, leaving it unchanged", self.index_name)
            action = "unchanged"
        else:
            self.backend.create_index(definition)
            action = "created"
        return {
            "indexName": self.index_name,
            "action": action,
            "fieldsCount": len(definition["fields"]),
        }

    def index_info(self) -> dict[str, Any]:
        if not self.backend.index_exists():
            msg = "Search index not found. Initialize the search index first"
            raise NotFoundError(msg, details={"indexName": self.index_name})
        stats = self.backend.get_statistics()
        definition = index_definition(self.index_name)
        return {
            "indexName": self.index_name,
            "fieldsCount": len(definition["fields"]),
            "documentCount": stats.document_count,
            "storageSize": stats.storage_size,
            "fields": [{"name": f["name"], "type": f["type"]} for f in definition["fields"]],
        }

    def health(self) -> dict[str, Any]:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            exists = self.backend.index_exists()
            stats = self.backend.get_statistics() if exists else None
        except SearchUnavailable as e:
            logger.warning("Search health check failed: %s", e)
            return {"status": "unhealthy", "detail": str(e), "timestamp": timestamp}
        return {
            "status": "healthy",
            "backend": self.backend.backend_id,
            "candidatesIndex": {
                "exists": exists,
                "documentCount": stats.document_count if stats else 0,
                "storageSize": stats.storage_size if stats else 0,
            },
            "timestamp": timestamp,
        }

    def sync(self, documents: list[dict[str, Any]]) -> SyncReport:
        """Merge-or-upload documents. Per-document failures are collected."""
        report = SyncReport(attempted=len(documents))
        valid: list[dict[str, Any]] = []
        for doc in documents:
            reason = _validate_document(doc)
            if reason:
                report.errors.append(IndexingResult(
                    key=str(doc.get(KEY_FIELD) or ""), succeeded=False, error_message=reason,
                ))
                continue
            valid.append({**doc, "skills": dedupe_skills(doc.get("skills", []))})

        if valid:
            self._collect(report, self.backend.merge_or_upload(valid))
        report.failed = len(report.errors)
        logger.info(
            "Synced %d/%d documents to %s", report.succeeded, report.attempted, self.index_name,
        )
        return report

    def remove(self, candidate_ids: list[str]) -> SyncReport:
        report = SyncReport(attempted=len(candidate_ids))
        keys = [k for k in candidate_ids if k and k.strip()]
        for _ in range(len(candidate_ids) - len(keys)):
            report.errors.append(IndexingResult(
                key="", succeeded=False, error_message=f"{KEY_FIELD} is required",
            ))
        if keys:
            self._collect(report, self.backend.delete(keys))
        report.failed = len(report.errors)
        return report

    @staticmethod
    def _collect(report: SyncReport, results: list[IndexingResult]) -> None:
        for result in results:
            if result.succeeded:
                report.succeeded += 1
            else:
                logger.warning("Index write failed for %s: %s", result.key, result.error_message)
                report.errors.append(result)

    def drift(self, repository: CandidateRepository) -> DriftStats:
        """Compare stored candidate records with the index contents."""
        total = with_resumes = processed = 0
        for record in repository.iter_records():
            total += 1
            if record.resume_file_name:
                with_resumes += 1
                if record.resume_content:
                    processed += 1
        unprocessed = with_resumes - processed
        stats = self.backend.get_statistics()
        rate = round(processed / with_resumes * 100, 2) if with_resumes else 0.0
        return DriftStats(
            total_candidates=total,
            candidates_with_resumes=with_resumes,
            processed_resumes=processed,
            unprocessed_resumes=unprocessed,
            processing_rate=rate,
            needs_processing=unprocessed > 0,
            document_count=stats.document_count,
            storage_size=stats.storage_size,
            unsynced_count=max(0, total - stats.document_count),
        )
