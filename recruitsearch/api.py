"""JSON request/response surface over the core operations.

``handle(operation, body, services)`` returns ``(status, payload)``; every
failure becomes ``{"error": {code, message, details, timestamp}}`` with the
status of the exception that caused it.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from recruitsearch.analytics.aggregator import AnalyticsAggregator
from recruitsearch.core.db import get_batch_run
from recruitsearch.core.errors import NotFoundError, ValidationError, error_payload
from recruitsearch.core.schemas import BatchItem
from recruitsearch.pipeline.batch import BatchPipeline
from recruitsearch.pipeline.index_sync import IndexSynchronizer
from recruitsearch.pipeline.search_service import CandidateSearchService
from recruitsearch.query.builder import build_from_intent
from recruitsearch.query.interpreter import interpret
from recruitsearch.resume.extractor import ResumeExtractor
from recruitsearch.resume.text import format_for_content_type
from recruitsearch.storage.blob import CandidateRepository

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Explicitly constructed capability handles. Any may be absent."""

    search: CandidateSearchService | None = None
    synchronizer: IndexSynchronizer | None = None
    pipeline: BatchPipeline | None = None
    analytics: AnalyticsAggregator | None = None
    extractor: ResumeExtractor | None = None
    repository: CandidateRepository | None = None


def _require(service: Any, name: str) -> Any:
    if service is None:
        msg = f"{name} is not configured"
        raise NotFoundError(msg)
    return service


def _int(body: dict[str, Any], key: str, default: int | None) -> int | None:
    value = body.get(key, default)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        msg = f"{key} must be an integer, got {value!r}"
        raise ValidationError(msg, details={"field": key}) from None


def _text(body: dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        msg = f"{key} is required"
        raise ValidationError(msg, details={"field": key})
    return value


# ---- operations ----

def _parse_query(body: dict[str, Any], services: Services) -> dict[str, Any]:
    intent = interpret(_text(body, "query"))
    built = build_from_intent(intent)
    return {
        "parsedQuery": intent.model_dump(mode="json"),
        "searchQuery": built.query_text,
        "filter": built.filter_text,
        "facets": list(built.facets),
    }


def _search(body: dict[str, Any], services: Services) -> dict[str, Any]:
    service: CandidateSearchService = _require(services.search, "Search")
    return service.search(
        query=body.get("query") or "*",
        mode=body.get("mode") or "general",
        filters=body.get("filters"),
        page=_int(body, "page", 1) or 1,
        size=_int(body, "size", None),
        sort_by=body.get("sortBy"),
        sort_order=body.get("sortOrder") or "asc",
        user_id=body.get("userId"),
        session_id=body.get("sessionId"),
    )


def _natural_language(body: dict[str, Any], services: Services) -> dict[str, Any]:
    service: CandidateSearchService = _require(services.search, "Search")
    return service.natural_language_search(
        body.get("query") or "",
        top=_int(body, "top", None),
        user_id=body.get("userId"),
        session_id=body.get("sessionId"),
    )


def _semantic(body: dict[str, Any], services: Services) -> dict[str, Any]:
    service: CandidateSearchService = _require(services.search, "Search")
    return service.semantic_search(
        body.get("query") or "",
        top=_int(body, "top", 20) or 20,
        skip=_int(body, "skip", 0) or 0,
        filters=body.get("filters"),
        user_id=body.get("userId"),
        session_id=body.get("sessionId"),
    )


def _match_job(body: dict[str, Any], services: Services) -> dict[str, Any]:
    service: CandidateSearchService = _require(services.search, "Search")
    job = body.get("job", body)
    return service.match_job(job, user_id=body.get("userId"), session_id=body.get("sessionId"))


def _facets(body: dict[str, Any], services: Services) -> dict[str, Any]:
    service: CandidateSearchService = _require(services.search, "Search")
    return service.facets()


def _extract_resume(body: dict[str, Any], services: Services) -> dict[str, Any]:
    extractor: ResumeExtractor = _require(services.extractor, "Resume extraction")
    if body.get("resumeText"):
        result = extractor.extract_text(body["resumeText"])
    elif body.get("resumeReference"):
        repository: CandidateRepository = _require(services.repository, "Document store")
        reference = body["resumeReference"]
        declared = format_for_content_type(repository.resume_content_type(reference))
        result = extractor.extract_file(repository.load_resume(reference), reference, declared)
    else:
        msg = "Either resumeText or resumeReference is required"
        raise ValidationError(msg)
    return {
        "skills": result.skills,
        "experienceSummary": result.experience_summary,
        "method": result.method,
        "experienceAssessment": (
            result.assessment.model_dump(by_alias=True) if result.assessment else None
        ),
        "extractedData": (
            result.structured.model_dump(mode="json", by_alias=True) if result.structured else None
        ),
    }


def _batch_process(body: dict[str, Any], services: Services) -> dict[str, Any]:
    pipeline: BatchPipeline = _require(services.pipeline, "Batch pipeline")
    raw_items = body.get("items")
    if raw_items is None:
        max_resumes = _int(body, "maxResumes", None)
        if max_resumes is not None and max_resumes < 1:
            msg = f"maxResumes must be >= 1, got {max_resumes}"
            raise ValidationError(msg, details={"field": "maxResumes"})
        items = pipeline.collect_unprocessed(max_resumes)
    elif isinstance(raw_items, list):
        try:
            items = [
                BatchItem(candidate_id=i["candidateId"], resume_reference=i["resumeReference"])
                for i in raw_items
            ]
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Invalid batch item: {e}"
            raise ValidationError(msg) from e
    else:
        msg = "items must be a list"
        raise ValidationError(msg)

    concurrency = _int(body, "maxConcurrency", None)
    job = asyncio.run(pipeline.run(items, max_concurrency=concurrency))
    return job.to_dict()


def _batch_status(body: dict[str, Any], services: Services) -> dict[str, Any]:
    pipeline: BatchPipeline = _require(services.pipeline, "Batch pipeline")
    batch_id = _text(body, "batchId")
    record = get_batch_run(_require(pipeline.conn, "Batch audit log"), batch_id)
    if record is None:
        msg = f"Batch {batch_id} not found"
        raise NotFoundError(msg, details={"batchId": batch_id})
    return record


def _sync_documents(body: dict[str, Any], services: Services) -> dict[str, Any]:
    sync: IndexSynchronizer = _require(services.synchronizer, "Index synchronizer")
    documents = body.get("documents")
    if not isinstance(documents, list) or not all(isinstance(d, dict) for d in documents):
        msg = "documents must be a list of objects"
        raise ValidationError(msg, details={"field": "documents"})
    return sync.sync(documents).model_dump(mode="json")


def _remove_documents(body: dict[str, Any], services: Services) -> dict[str, Any]:
    sync: IndexSynchronizer = _require(services.synchronizer, "Index synchronizer")
    ids = body.get("candidateIds")
    if not isinstance(ids, list):
        msg = "candidateIds must be a list"
        raise ValidationError(msg)
    return sync.remove([str(i) for i in ids]).model_dump(mode="json")


def _processing_stats(body: dict[str, Any], services: Services) -> dict[str, Any]:
    sync: IndexSynchronizer = _require(services.synchronizer, "Index synchronizer")
    repository: CandidateRepository = _require(services.repository, "Document store")
    return sync.drift(repository).model_dump(mode="json")


def _index_init(body: dict[str, Any], services: Services) -> dict[str, Any]:
    sync: IndexSynchronizer = _require(services.synchronizer, "Index synchronizer")
    return sync.initialize_index(force=bool(body.get("force", False)))


def _index_info(body: dict[str, Any], services: Services) -> dict[str, Any]:
    sync: IndexSynchronizer = _require(services.synchronizer, "Index synchronizer")
    return sync.index_info()


def _log_event(body: dict[str, Any], services: Services) -> dict[str, Any]:
    analytics: AnalyticsAggregator = _require(services.analytics, "Analytics")
    filters = body.get("filters") or {}
    if not isinstance(filters, dict):
        msg = "filters must be an object"
        raise ValidationError(msg, details={"field": "filters"})
    timestamp = body.get("timestamp")
    try:
        parsed_ts = datetime.fromisoformat(timestamp) if timestamp else None
    except (TypeError, ValueError):
        msg = f"timestamp must be ISO-8601, got {timestamp!r}"
        raise ValidationError(msg) from None
    event = analytics.log_event(
        query=_text(body, "query"),
        search_type=_text(body, "searchType"),
        filters=filters,
        result_count=_int(body, "resultsCount", 0) or 0,
        user_id=body.get("userId"),
        session_id=body.get("sessionId"),
        timestamp=parsed_ts,
    )
    return {"message": "Search query logged successfully", "entryId": event.event_id}


def _summary(body: dict[str, Any], services: Services) -> dict[str, Any]:
    analytics: AnalyticsAggregator = _require(services.analytics, "Analytics")
    return analytics.get_summary(_int(body, "days", 7) or 7)


def _trends(body: dict[str, Any], services: Services) -> dict[str, Any]:
    analytics: AnalyticsAggregator = _require(services.analytics, "Analytics")
    return analytics.get_trends(_int(body, "days", 30) or 30)


OPERATIONS: dict[str, Callable[[dict[str, Any], Services], dict[str, Any]]] = {
    "parse-query": _parse_query,
    "search": _search,
    "natural-language-search": _natural_language,
    "semantic-search": _semantic,
    "match-job": _match_job,
    "facets": _facets,
    "extract-resume": _extract_resume,
    "batch-process": _batch_process,
    "batch-status": _batch_status,
    "sync-documents": _sync_documents,
    "remove-documents": _remove_documents,
    "processing-stats": _processing_stats,
    "index-init": _index_init,
    "index-info": _index_info,
    "log-event": _log_event,
    "analytics-summary": _summary,
    "search-trends": _trends,
}


def handle(operation: str, body: dict[str, Any] | None, services: Services) -> tuple[int, dict[str, Any]]:
    """Dispatch one JSON request. Never raises."""
    try:
        if operation == "index-health":
            sync: IndexSynchronizer = _require(services.synchronizer, "Index synchronizer")
            health = sync.health()
            return (200 if health["status"] == "healthy" else 503), health

        handler = OPERATIONS.get(operation)
        if handler is None:
            valid = ", ".join(sorted([*OPERATIONS, "index-health"]))
            msg = f"Unknown operation '{operation}'. Available: {valid}"
            raise NotFoundError(msg)
        if body is not None and not isinstance(body, dict):
            msg = "Request body must be a JSON object"
            raise ValidationError(msg)
        return 200, handler(body or {}, services)
    except Exception as e:
        status, payload = error_payload(e)
        if status >= 500:
            logger.error("Operation %s failed: %s", operation, e, exc_info=True)
        else:
            logger.info("Operation %s rejected: %s", operation, e)
        return status, payload
