"""Read-side aggregation over the append-only analytics log.

Malformed historical rows (bad JSON, bad timestamp, failed validation) are
skipped with a DEBUG log line rather than failing the whole aggregation.
"""

import json
import logging
import sqlite3
from collections import Counter
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from recruitsearch.analytics.sink import EventSink, SqliteEventSink
from recruitsearch.core.config import AnalyticsConfig
from recruitsearch.core.db import iter_event_rows
from recruitsearch.core.errors import ValidationError
from recruitsearch.core.schemas import AnalyticsEvent
from recruitsearch.query.interpreter import extract_locations
from recruitsearch.query.vocabulary import find_skills

logger = logging.getLogger(__name__)

VOLUME_CHANGE_THRESHOLD = 10


def _row_to_event(row: sqlite3.Row) -> AnalyticsEvent:
    return AnalyticsEvent(
        event_id=row["id"],
        query=row["query"],
        search_type=row["search_type"],
        filters=json.loads(row["filters_json"] or "{}"),
        result_count=row["result_count"],
        user_id=row["user_id"],
        session_id=row["session_id"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )


def query_complexity(query: str, filters: dict[str, Any]) -> str:
    """simple: <=2 words, medium: <=5 words, complex: longer or filtered."""
    words = len(query.split())
    if filters:
        return "complex"
    if words <= 2:
        return "simple"
    if words <= 5:
        return "medium"
    return "complex"


def _percent_change(recent: int, previous: int) -> int:
    return round((recent - previous) / previous * 100)


class AnalyticsAggregator:
    """Logs query events and answers trend and summary questions over them."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        config: AnalyticsConfig | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self.conn = conn
        self.config = config or AnalyticsConfig()
        self.sink = sink or SqliteEventSink(conn)

    def log_event(
        self,
        query: str,
        search_type: str,
        filters: dict[str, Any] | None = None,
        result_count: int = 0,
        user_id: str | None = None,
        session_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> AnalyticsEvent:
        """Append one event, filling in user, session and time defaults."""
        if not (query or "").strip() or not (search_type or "").strip():
            msg = "query and searchType are required"
            raise ValidationError(msg)

        fields: dict[str, Any] = {
            "query": query,
            "search_type": search_type,
            "filters": filters or {},
            "result_count": max(0, int(result_count)),
        }
        if user_id:
            fields["user_id"] = user_id
        if session_id:
            fields["session_id"] = session_id
        if timestamp is not None:
            fields["timestamp"] = timestamp

        try:
            event = AnalyticsEvent(**fields)
        except PydanticValidationError as e:
            msg = f"Invalid analytics event: {e.error_count()} field error(s)"
            raise ValidationError(msg, details=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]) from e
        self.sink.append(event)
        logger.debug("Logged %s query event %s", event.search_type, event.event_id)
        return event

    def events(self, since: datetime | None = None) -> Iterator[AnalyticsEvent]:
        """Yield parseable events oldest first."""
        for row in iter_event_rows(self.conn, since):
            try:
                yield _row_to_event(row)
            except (ValueError, TypeError, KeyError) as e:
                logger.debug("Skipping malformed analytics row: %s", e)

    def get_trends(self, window_days: int = 30, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        start = now - timedelta(days=window_days)

        skills: Counter[str] = Counter()
        locations: Counter[str] = Counter()
        volume: Counter[str] = Counter()
        complexity: Counter[str] = Counter()
        this_week = last_week = 0

        for event in self.events(since=start):
            for skill in find_skills(event.query):
                skills[skill] += 1
            location = event.filters.get("location")
            if isinstance(location, str) and location.strip():
                locations[location.strip()] += 1
            else:
                for loc in extract_locations(event.query):
                    locations[loc] += 1
            volume[event.timestamp.date().isoformat()] += 1
            complexity[query_complexity(event.query, event.filters)] += 1

            age = now - event.timestamp
            if age <= timedelta(days=7):
                this_week += 1
            elif age <= timedelta(days=14):
                last_week += 1

        trends = {
            "topSkills": dict(skills.most_common(self.config.trend_top_n)),
            "topLocations": dict(locations.most_common(self.config.location_top_n)),
            "searchVolume": dict(sorted(volume.items())),
            "queryComplexity": dict(complexity),
        }
        return {
            "period": {
                "days": window_days,
                "startDate": start.isoformat(),
                "endDate": now.isoformat(),
            },
            "trends": trends,
            "insights": self._insights(skills, complexity, volume, this_week, last_week),
        }

    def _insights(
        self,
        skills: Counter[str],
        complexity: Counter[str],
        volume: Counter[str],
        this_week: int,
        last_week: int,
    ) -> list[str]:
        insights: list[str] = []
        if skills:
            top, count = skills.most_common(1)[0]
            insights.append(f"Most searched skill: {top} ({count} searches)")

        total = sum(complexity.values())
        if total:
            pct = round(complexity.get("complex", 0) / total * 100)
            insights.append(f"{pct}% of searches use complex queries with filters")

        days = sorted(volume.items())
        if len(days) >= 2:
            recent = sum(c for _, c in days[-3:])
            previous = sum(c for _, c in days[-6:-3])
            if previous:
                change = _percent_change(recent, previous)
                if change > VOLUME_CHANGE_THRESHOLD:
                    insights.append(f"Search volume increased by {change}% in recent days")
                elif change < -VOLUME_CHANGE_THRESHOLD:
                    insights.append(f"Search volume decreased by {abs(change)}% in recent days")

        if last_week:
            change = _percent_change(this_week, last_week)
            insights.append(f"{change:+d}% week-over-week search volume")
        return insights

    def get_summary(self, window_days: int = 7, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        start = now - timedelta(days=window_days)

        total = with_results = result_sum = 0
        users: set[str] = set()
        search_types: Counter[str] = Counter()
        top_queries: Counter[str] = Counter()
        daily: Counter[str] = Counter()
        popular_filters: Counter[str] = Counter()

        for event in self.events(since=start):
            total += 1
            users.add(event.user_id)
            search_types[event.search_type] += 1
            top_queries[event.query.lower()] += 1
            result_sum += event.result_count
            if event.result_count > 0:
                with_results += 1
            daily[event.timestamp.date().isoformat()] += 1
            for key in event.filters:
                popular_filters[key] += 1

        return {
            "period": {
                "days": window_days,
                "startDate": start.isoformat(),
                "endDate": now.isoformat(),
            },
            "summary": {
                "totalQueries": total,
                "uniqueUsers": len(users),
                "averageResultsCount": round(result_sum / total, 2) if total else 0,
                "successRate": round(with_results / total * 100) if total else 0,
            },
            "searchTypes": dict(search_types.most_common()),
            "topQueries": dict(top_queries.most_common(10)),
            "dailyStats": dict(sorted(daily.items())),
            "popularFilters": dict(popular_filters.most_common(10)),
            "resultStats": {
                "queriesWithResults": with_results,
                "queriesWithoutResults": total - with_results,
            },
        }
