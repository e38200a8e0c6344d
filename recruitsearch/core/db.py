"""SQLite database layer for the analytics event log and batch audit records."""

import json
import sqlite3
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from recruitsearch.core.schemas import AnalyticsEvent

_ANALYTICS_TABLE = """
CREATE TABLE IF NOT EXISTS analytics_events (
    id              TEXT    PRIMARY KEY,
    query           TEXT    NOT NULL,
    search_type     TEXT    NOT NULL,
    filters_json    TEXT    NOT NULL DEFAULT '{}',
    result_count    INTEGER NOT NULL DEFAULT 0,
    user_id         TEXT    NOT NULL DEFAULT 'anonymous',
    session_id      TEXT    NOT NULL DEFAULT '',
    timestamp       TEXT    NOT NULL,
    query_length    INTEGER NOT NULL DEFAULT 0,
    has_filters     INTEGER NOT NULL DEFAULT 0
);
"""

_ANALYTICS_INDEX = """
CREATE INDEX IF NOT EXISTS idx_analytics_timestamp ON analytics_events (timestamp);
"""

_BATCH_RUNS_TABLE = """
CREATE TABLE IF NOT EXISTS batch_runs (
    batch_id        TEXT    PRIMARY KEY,
    status          TEXT    NOT NULL,
    total           INTEGER NOT NULL,
    processed       INTEGER NOT NULL,
    succeeded       INTEGER NOT NULL,
    failed          INTEGER NOT NULL,
    batches         INTEGER NOT NULL,
    errors_json     TEXT    NOT NULL DEFAULT '[]',
    started_at      TEXT    NOT NULL,
    finished_at     TEXT    NOT NULL
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_ANALYTICS_TABLE)
    conn.execute(_ANALYTICS_INDEX)
    conn.execute(_BATCH_RUNS_TABLE)
    conn.commit()
    return conn


def insert_event(conn: sqlite3.Connection, event: AnalyticsEvent) -> None:
    """Append an analytics event. Rows are never updated afterwards."""
    conn.execute(
        """
        INSERT INTO analytics_events
            (id, query, search_type, filters_json, result_count, user_id,
             session_id, timestamp, query_length, has_filters)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            event.event_id,
            event.query,
            event.search_type,
            json.dumps(event.filters, default=str),
            event.result_count,
            event.user_id,
            event.session_id,
            event.timestamp.isoformat(),
            event.query_length,
            int(event.has_filters),
        ),
    )
    conn.commit()


def iter_event_rows(
    conn: sqlite3.Connection,
    since: datetime | None = None,
) -> Iterator[sqlite3.Row]:
    """Yield raw event rows, oldest first, optionally from ``since`` onwards.

    Rows are yielded unparsed so callers can skip malformed history.
    """
    if since is None:
        cursor = conn.execute("SELECT * FROM analytics_events ORDER BY timestamp")
    else:
        cursor = conn.execute(
            "SELECT * FROM analytics_events WHERE timestamp >= ? ORDER BY timestamp",
            (since.isoformat(),),
        )
    yield from cursor


def insert_batch_run(
    conn: sqlite3.Connection,
    batch_id: str,
    status: str,
    total: int,
    processed: int,
    succeeded: int,
    failed: int,
    batches: int,
    errors: list[dict[str, Any]],
    started_at: datetime,
    finished_at: datetime,
) -> None:
    """Persist the audit record of a resolved batch."""
    conn.execute(
        """
        INSERT INTO batch_runs
            (batch_id, status, total, processed, succeeded, failed, batches,
             errors_json, started_at, finished_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            batch_id,
            status,
            total,
            processed,
            succeeded,
            failed,
            batches,
            json.dumps(errors),
            started_at.isoformat(),
            finished_at.isoformat(),
        ),
    )
    conn.commit()


def get_batch_run(conn: sqlite3.Connection, batch_id: str) -> dict[str, Any] | None:
    """Return a stored batch audit record, or None when unknown."""
    row = conn.execute(
        "SELECT * FROM batch_runs WHERE batch_id = ?", (batch_id,),
    ).fetchone()
    if row is None:
        return None
    record = dict(row)
    record["errors"] = json.loads(record.pop("errors_json"))
    return record
