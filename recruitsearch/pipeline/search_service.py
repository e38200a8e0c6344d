"""Candidate search operations: general, natural-language, semantic, job match.

Each operation computes its response first and logs an analytics event
afterwards through a SafeEventSink, so a logging failure never fails a search.
"""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from recruitsearch.analytics.sink import EventSink, SafeEventSink
from recruitsearch.core.config import Settings
from recruitsearch.core.errors import RecruitSearchError, SearchUnavailable, ValidationError
from recruitsearch.core.schemas import (
    AnalyticsEvent,
    JobDescription,
    MatchResult,
    SearchMode,
    StructuredFilters,
)
from recruitsearch.pipeline.scorer import Ranking, rank_results
from recruitsearch.query.builder import (
    MATCH_ALL,
    BuiltQuery,
    build_from_filters,
    build_from_intent,
    build_job_query,
)
from recruitsearch.query.interpreter import (
    MIN_NATURAL_QUERY_LENGTH,
    MIN_QUERY_LENGTH,
    interpret,
    validate_query,
)
from recruitsearch.search.backend import SearchBackend, SearchOptions, SearchResponse
from recruitsearch.search.schema import DETAILED_FIELDS, SEARCH_PROFILES

logger = logging.getLogger(__name__)

MAX_SEMANTIC_TOP = 50

_M = TypeVar("_M", bound=BaseModel)


def _as_model(model: type[_M], data: Any, what: str) -> _M:
    """Validate caller input, converting pydantic errors into ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        msg = f"Invalid {what}"
        raise ValidationError(msg, details=details) from e


def result_to_dict(result: MatchResult) -> dict[str, Any]:
    return {
        **result.document,
        "candidateId": result.candidate_id,
        "score": result.overall_score,
        "semanticScore": result.semantic_score,
        "skillScore": result.skill_score,
        "matchedSkills": result.matched_skills,
        "requiredMatched": result.required_matched,
        "preferredMatched": result.preferred_matched,
        "highlights": result.highlights,
        "captions": result.captions,
    }


class CandidateSearchService:
    """Search entry points over an injected search backend."""

    def __init__(
        self,
        backend: SearchBackend,
        settings: Settings | None = None,
        event_sink: EventSink | None = None,
    ) -> None:
        self.backend = backend
        self.settings = settings or Settings()
        self.sink = SafeEventSink(event_sink)

    # ---- helpers ----

    def _options(self, mode: str, built: BuiltQuery, **overrides: Any) -> SearchOptions:
        profile = SEARCH_PROFILES[mode]
        fields: dict[str, Any] = {
            "filter": built.filter_text,
            "facets": built.facets,
            "top": profile["top"],
            "select": DETAILED_FIELDS,
            "order_by": built.order_by,
            "query_type": profile["query_type"],
            "search_mode": profile["search_mode"],
            "highlight_fields": profile.get("highlight_fields", ()),
        }
        fields.update(overrides)
        return SearchOptions(**fields)

    def _search(self, query_text: str, options: SearchOptions) -> SearchResponse:
        logger.debug("Searching %r filter=%r top=%d skip=%d", query_text, options.filter, options.top, options.skip)
        try:
            return self.backend.search(query_text, options)
        except RecruitSearchError:
            raise
        except Exception as e:
            msg = f"Search capability failed: {e}"
            raise SearchUnavailable(msg) from e

    def _log(
        self,
        query: str,
        mode: str,
        filters: dict[str, Any],
        result_count: int,
        user_id: str | None,
        session_id: str | None,
    ) -> None:
        fields: dict[str, Any] = {
            "query": query or MATCH_ALL,
            "search_type": mode,
            "filters": filters,
            "result_count": max(0, result_count),
        }
        if user_id:
            fields["user_id"] = user_id
        if session_id:
            fields["session_id"] = session_id
        try:
            event = AnalyticsEvent(**fields)
        except PydanticValidationError:
            logger.warning("Could not build analytics event for %r", query, exc_info=True)
            return
        self.sink.record(event)

    @staticmethod
    def _results(ranking: Ranking) -> list[dict[str, Any]]:
        return [result_to_dict(r) for r in ranking.results]

    # ---- operations ----

    def search(
        self,
        query: str = MATCH_ALL,
        mode: str = SearchMode.GENERAL.value,
        filters: StructuredFilters | dict[str, Any] | None = None,
        page: int = 1,
        size: int | None = None,
        sort_by: str | None = None,
        sort_order: str = "asc",
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Paged search with explicit structured filters."""
        if mode not in SEARCH_PROFILES:
            valid = ", ".join(sorted(SEARCH_PROFILES))
            msg = f"Unknown search mode '{mode}'. Available: {valid}"
            raise ValidationError(msg)
        if page < 1:
            msg = f"page must be >= 1, got {page}"
            raise ValidationError(msg)
        size = size if size is not None else self.settings.search.default_top
        if size < 1:
            msg = f"size must be >= 1, got {size}"
            raise ValidationError(msg)
        size = min(size, self.settings.search.max_page_size)
        skip = (page - 1) * size

        parsed = _as_model(StructuredFilters, filters, "filters")
        built = build_from_filters(parsed, query, mode, sort_by, sort_order)
        response = self._search(built.query_text, self._options(mode, built, top=size, skip=skip))
        ranking = rank_results(
            response.results, mode, self.settings.scoring, required=parsed.skills,
        )

        payload = {
            "results": self._results(ranking),
            "count": response.count,
            "page": page,
            "size": size,
            "hasMore": response.count > skip + size,
            "facets": response.facets,
            "searchQuery": built.query_text,
            "appliedFilters": parsed.applied(),
            "errors": ranking.errors,
        }
        self._log(query, mode, parsed.applied(), response.count, user_id, session_id)
        return payload

    def natural_language_search(
        self,
        text: str,
        top: int | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Interpret free text, build a query from it, rank in general mode."""
        intent = interpret(text, MIN_NATURAL_QUERY_LENGTH)
        mode = SearchMode.NATURAL_LANGUAGE.value
        built = build_from_intent(intent, mode)
        overrides: dict[str, Any] = {}
        if top is not None:
            overrides["top"] = max(1, min(top, self.settings.search.max_page_size))
        response = self._search(built.query_text, self._options(mode, built, **overrides))
        ranking = rank_results(
            response.results, SearchMode.GENERAL, self.settings.scoring, required=intent.skills,
        )

        payload = {
            "results": self._results(ranking),
            "count": response.count,
            "facets": response.facets,
            "answers": response.answers,
            "parsedQuery": intent.model_dump(mode="json"),
            "searchQuery": built.query_text,
            "filter": built.filter_text,
            "errors": ranking.errors,
        }
        self._log(text, mode, {}, response.count, user_id, session_id)
        return payload

    def semantic_search(
        self,
        text: str,
        top: int = 20,
        skip: int = 0,
        filters: StructuredFilters | dict[str, Any] | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        query = validate_query(text, MIN_QUERY_LENGTH)
        if skip < 0:
            msg = f"skip must be >= 0, got {skip}"
            raise ValidationError(msg)
        top = max(1, min(top, MAX_SEMANTIC_TOP))

        mode = SearchMode.SEMANTIC.value
        parsed = _as_model(StructuredFilters, filters, "filters")
        built = build_from_filters(parsed, query, mode)
        response = self._search(built.query_text, self._options(mode, built, top=top, skip=skip))
        ranking = rank_results(response.results, mode, self.settings.scoring, required=parsed.skills)

        payload = {
            "results": self._results(ranking),
            "count": response.count,
            "facets": response.facets,
            "answers": response.answers,
            "errors": ranking.errors,
        }
        self._log(query, mode, parsed.applied(), response.count, user_id, session_id)
        return payload

    def match_job(
        self,
        job: JobDescription | dict[str, Any],
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Rank candidates for a job by semantic relevance and skill overlap."""
        parsed = _as_model(JobDescription, job, "job description")
        mode = SearchMode.JOB_MATCH.value
        built = build_job_query(parsed)
        response = self._search(built.query_text, self._options(mode, built, top=parsed.max_results))
        ranking = rank_results(
            response.results,
            mode,
            self.settings.scoring,
            required=parsed.required_skills,
            preferred=parsed.preferred_skills,
        )

        payload = {
            "jobTitle": parsed.title,
            "results": self._results(ranking),
            "count": response.count,
            "facets": response.facets,
            "errors": ranking.errors,
        }
        applied = parsed.model_dump(
            mode="json", by_alias=True, exclude_defaults=True,
            include={"required_skills", "location", "visa_requirement", "experience_level"},
        )
        self._log(parsed.title, mode, applied, response.count, user_id, session_id)
        return payload

    def facets(self) -> dict[str, Any]:
        """Facet counts over the whole index."""
        mode = SearchMode.GENERAL.value
        built = BuiltQuery(facets=tuple(SEARCH_PROFILES[mode]["facets"]))
        response = self._search(built.query_text, self._options(mode, built, top=0, select=()))
        return {"facets": response.facets, "total": response.count}
