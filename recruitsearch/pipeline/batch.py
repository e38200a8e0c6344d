"""Batch resume processing: extract, persist, forward to the index.

Items run in chunks no larger than the concurrency limit. A chunk's items
run concurrently in worker threads; the next chunk starts only after every
item of the current one has resolved, with a short pause in between. Each
item resolves exactly once, as a success or an error entry, and one item's
failure never touches another item's outcome.
"""

import asyncio
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from recruitsearch.core.config import MAX_BATCH_CONCURRENCY, BatchConfig
from recruitsearch.core.db import insert_batch_run
from recruitsearch.core.errors import ExternalServiceError, RecruitSearchError, ValidationError
from recruitsearch.core.schemas import BatchItem, BatchItemOutcome, ItemStatus
from recruitsearch.pipeline.index_sync import IndexSynchronizer, build_search_document
from recruitsearch.resume.extractor import ResumeExtractor
from recruitsearch.resume.text import format_for_content_type
from recruitsearch.storage.blob import CandidateRepository

logger = logging.getLogger(__name__)


class BatchState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchJob:
    """Progress and outcome of one batch.

    Counters only grow: outcomes are appended chunk by chunk and never removed.
    """

    def __init__(self, total: int, batch_id: str | None = None) -> None:
        self.batch_id = batch_id or f"batch_{uuid.uuid4().hex[:12]}"
        self.total = total
        self.state = BatchState.CREATED
        self.batches = 0
        self.outcomes: list[BatchItemOutcome] = []
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None

    def start(self) -> None:
        if self.state is not BatchState.CREATED:
            msg = f"Cannot start batch {self.batch_id} in state {self.state.value}"
            raise RuntimeError(msg)
        self.state = BatchState.RUNNING
        self.started_at = _utcnow()

    def record_chunk(self, outcomes: list[BatchItemOutcome]) -> None:
        if self.state is not BatchState.RUNNING:
            msg = f"Cannot record results for batch {self.batch_id} in state {self.state.value}"
            raise RuntimeError(msg)
        self.outcomes.extend(outcomes)
        self.batches += 1

    def complete(self) -> None:
        if self.state is not BatchState.RUNNING:
            msg = f"Cannot complete batch {self.batch_id} in state {self.state.value}"
            raise RuntimeError(msg)
        self.state = BatchState.COMPLETED
        self.finished_at = _utcnow()

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status is ItemStatus.SUCCESS)

    @property
    def errors(self) -> list[BatchItemOutcome]:
        return [o for o in self.outcomes if o.status is ItemStatus.ERROR]

    def partial_failure(self) -> dict[str, Any] | None:
        """Structured report when some items failed, else None."""
        errors = self.errors
        if not errors:
            return None
        return {
            "code": "PARTIAL_BATCH_FAILURE",
            "message": f"{len(errors)} of {self.processed} items failed",
            "errors": [e.model_dump(mode="json") for e in errors],
        }

    def summary(self) -> dict[str, Any]:
        failed = len(self.errors)
        return {
            "total": self.total,
            "successful": self.succeeded,
            "failed": failed,
            "successRate": round(self.succeeded / self.total * 100) if self.total else 0,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "batchId": self.batch_id,
            "status": self.state.value,
            "processed": self.processed,
            "batches": self.batches,
            "errors": [e.model_dump(mode="json") for e in self.errors],
            "summary": self.summary(),
            "partialFailure": self.partial_failure(),
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.finished_at.isoformat() if self.finished_at else None,
        }


class BatchPipeline:
    """Runs batches of resume extractions and forwards results to the index."""

    def __init__(
        self,
        extractor: ResumeExtractor,
        repository: CandidateRepository,
        synchronizer: IndexSynchronizer,
        config: BatchConfig | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        self.extractor = extractor
        self.repository = repository
        self.synchronizer = synchronizer
        self.config = config or BatchConfig()
        self.conn = conn

    def collect_unprocessed(self, max_resumes: int | None = None) -> list[BatchItem]:
        """Stored candidates that have a resume file but no extracted content."""
        limit = max_resumes if max_resumes is not None else self.config.max_resumes
        items: list[BatchItem] = []
        for record in self.repository.iter_records():
            if len(items) >= limit:
                break
            if record.resume_file_name and not record.resume_content:
                items.append(BatchItem(
                    candidate_id=record.candidate_id,
                    resume_reference=record.resume_file_name,
                ))
        logger.info("Found %d candidates with unprocessed resumes", len(items))
        return items

    async def run(self, items: list[BatchItem], max_concurrency: int | None = None) -> BatchJob:
        size = max_concurrency if max_concurrency is not None else self.config.max_concurrency
        if not 1 <= size <= MAX_BATCH_CONCURRENCY:
            msg = f"maxConcurrency must be between 1 and {MAX_BATCH_CONCURRENCY}, got {size}"
            raise ValidationError(msg, details={"field": "maxConcurrency"})

        job = BatchJob(total=len(items))
        job.start()
        logger.info("Starting %s: %d items, concurrency %d", job.batch_id, len(items), size)

        for start in range(0, len(items), size):
            chunk = items[start:start + size]
            logger.info(
                "Processing chunk %d, items %d-%d",
                job.batches + 1, start + 1, start + len(chunk),
            )
            results = await asyncio.gather(
                *(asyncio.to_thread(self.process_item, item) for item in chunk),
                return_exceptions=True,
            )
            job.record_chunk([
                self._outcome(item, result) for item, result in zip(chunk, results)
            ])
            if start + size < len(items) and self.config.inter_chunk_delay_seconds > 0:
                await asyncio.sleep(self.config.inter_chunk_delay_seconds)

        job.complete()
        logger.info(
            "Batch %s completed: %d processed, %d errors",
            job.batch_id, job.processed, len(job.errors),
        )
        if self.conn is not None:
            try:
                self._audit(self.conn, job)
            except sqlite3.Error:
                logger.warning("Could not write audit record for %s", job.batch_id, exc_info=True)
        return job

    def process_item(self, item: BatchItem) -> BatchItemOutcome:
        """Extract one resume, persist the record and forward it to the index."""
        record = self.repository.load(item.candidate_id)
        data = self.repository.load_resume(item.resume_reference)
        declared = format_for_content_type(self.repository.resume_content_type(item.resume_reference))
        extraction = self.extractor.extract_file(data, item.resume_reference, declared)

        updated = record.model_copy(update={
            "resume_content": extraction.resume_text,
            "extracted_skills": extraction.skills,
            "extracted_experience": extraction.experience_summary,
            "updated_at": _utcnow(),
        })
        self.repository.save(updated)

        report = self.synchronizer.sync([build_search_document(updated, extraction.resume_text, extraction)])
        if report.failed:
            reason = report.errors[0].error_message or "index write failed"
            msg = f"Failed to index candidate {item.candidate_id}: {reason}"
            raise ExternalServiceError(msg)

        return BatchItemOutcome(
            candidate_id=item.candidate_id,
            status=ItemStatus.SUCCESS,
            skills=extraction.skills,
        )

    @staticmethod
    def _outcome(item: BatchItem, result: BatchItemOutcome | BaseException) -> BatchItemOutcome:
        if isinstance(result, BatchItemOutcome):
            return result
        if not isinstance(result, Exception):
            raise result
        code = result.code if isinstance(result, RecruitSearchError) else "INTERNAL_ERROR"
        logger.warning(
            "Failed to process resume for candidate %s: %s",
            item.candidate_id, result, exc_info=result,
        )
        return BatchItemOutcome(
            candidate_id=item.candidate_id,
            status=ItemStatus.ERROR,
            reason=str(result) or result.__class__.__name__,
            error_code=code,
        )

    @staticmethod
    def _audit(conn: sqlite3.Connection, job: BatchJob) -> None:
        insert_batch_run(
            conn,
            batch_id=job.batch_id,
            status=job.state.value,
            total=job.total,
            processed=job.processed,
            succeeded=job.succeeded,
            failed=len(job.errors),
            batches=job.batches,
            errors=[e.model_dump(mode="json") for e in job.errors],
            started_at=job.started_at or _utcnow(),
            finished_at=job.finished_at or _utcnow(),
        )
