"""Append-only sinks for query analytics events."""

import logging
import sqlite3
from abc import ABC, abstractmethod

from recruitsearch.core.db import insert_event
from recruitsearch.core.schemas import AnalyticsEvent

logger = logging.getLogger(__name__)


class EventSink(ABC):
    """Destination for analytics events. Events are appended, never changed."""

    @abstractmethod
    def append(self, event: AnalyticsEvent) -> None:
        """Persist one event."""


class SqliteEventSink(EventSink):
    """Writes events to the ``analytics_events`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def append(self, event: AnalyticsEvent) -> None:
        insert_event(self.conn, event)


class SafeEventSink(EventSink):
    """Wraps a sink so a logging failure can never fail the request path."""

    def __init__(self, inner: EventSink | None) -> None:
        self.inner = inner

    def append(self, event: AnalyticsEvent) -> None:
        self.record(event)

    def record(self, event: AnalyticsEvent) -> bool:
        """Append the event, returning False instead of raising on failure."""
        if self.inner is None:
            return False
        try:
            self.inner.append(event)
        except Exception:
            logger.warning("Failed to log analytics event %s", event.event_id, exc_info=True)
            return False
        return True
