"""
SQLite Event Store and Session Store adapters.

Implements EventStorePort and SessionStorePort using SQLite.
Designed to be Postgres-compatible (uses standard SQL patterns).

Tables:
- page_analytics: append-only events
- page_sessions: one row per (page_id, session_id)

Timestamps are stored as UTC ISO-8601 strings with fixed microsecond
precision so lexical order equals time order.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID

from presell_analytics.core.entities import (
    AnalyticsEvent,
    DateRange,
    EventType,
    SessionRecord,
    ensure_utc,
)
from presell_analytics.core.ports.stores import QueryError

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


SCHEMA = """
CREATE TABLE IF NOT EXISTS page_analytics (
    id TEXT PRIMARY KEY,
    page_id TEXT NOT NULL,
    session_id TEXT,
    event_type TEXT NOT NULL,
    element_id TEXT,
    scroll_depth INTEGER,
    referrer TEXT,
    user_agent TEXT,
    utm_source TEXT,
    utm_medium TEXT,
    utm_campaign TEXT,
    utm_term TEXT,
    utm_content TEXT,
    landing_page_url TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_page_analytics_page_created
    ON page_analytics (page_id, created_at);

CREATE TABLE IF NOT EXISTS page_sessions (
    id TEXT PRIMARY KEY,
    page_id TEXT NOT NULL,
    session_id TEXT NOT NULL,
    first_seen TEXT,
    last_seen TEXT,
    referrer TEXT,
    user_agent TEXT,
    utm_source TEXT,
    utm_medium TEXT,
    utm_campaign TEXT,
    utm_term TEXT,
    utm_content TEXT,
    landing_page_url TEXT,
    created_at TEXT NOT NULL,
    UNIQUE (page_id, session_id)
);
CREATE INDEX IF NOT EXISTS idx_page_sessions_page_created
    ON page_sessions (page_id, created_at);
"""


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def format_dt(dt: datetime | None) -> str | None:
    """Format datetime as sortable UTC ISO string."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat(timespec="microseconds")


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        if connection is not None:
            connection.row_factory = dict_factory

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise QueryError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = dict_factory
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def ensure_schema(self) -> None:
        """Create analytics tables if missing."""
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        except sqlite3.Error as e:
            raise QueryError(f"Schema setup failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Event Store
# -----------------------------------------------------------------------------


class SQLiteEventStore(SQLiteRepoBase):
    """SQLite implementation of EventStorePort."""

    def insert(self, event: AnalyticsEvent) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO page_analytics (
                    id, page_id, session_id, event_type, element_id, scroll_depth,
                    referrer, user_agent,
                    utm_source, utm_medium, utm_campaign, utm_term, utm_content,
                    landing_page_url, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(event.id),
                    event.page_id,
                    event.session_id,
                    event.event_type,
                    event.element_id,
                    event.scroll_depth,
                    event.referrer,
                    event.user_agent,
                    event.utm_source,
                    event.utm_medium,
                    event.utm_campaign,
                    event.utm_term,
                    event.utm_content,
                    event.landing_page_url,
                    format_dt(event.created_at),
                ),
            )
            if self._should_close():
                conn.commit()
        except sqlite3.Error as e:
            raise QueryError(f"Event insert failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()

    def select_range(
        self,
        page_id: str,
        date_range: DateRange,
        event_type: EventType | None = None,
    ) -> list[AnalyticsEvent]:
        conn = self._get_conn()
        try:
            query = """
                SELECT * FROM page_analytics
                WHERE page_id = ? AND created_at >= ? AND created_at < ?
            """
            params: list[Any] = [
                page_id,
                format_dt(date_range.start),
                format_dt(date_range.end),
            ]

            if event_type:
                query += " AND event_type = ?"
                params.append(event_type)

            query += " ORDER BY created_at ASC, id ASC"

            rows = conn.execute(query, params).fetchall()
            return [self._map_row(r) for r in rows]
        except sqlite3.Error as e:
            raise QueryError(f"Event query failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> AnalyticsEvent:
        return AnalyticsEvent(
            id=UUID(row["id"]),
            page_id=row["page_id"],
            session_id=row["session_id"],
            event_type=row["event_type"],
            element_id=row["element_id"],
            scroll_depth=row["scroll_depth"],
            referrer=row["referrer"],
            user_agent=row["user_agent"],
            utm_source=row["utm_source"],
            utm_medium=row["utm_medium"],
            utm_campaign=row["utm_campaign"],
            utm_term=row["utm_term"],
            utm_content=row["utm_content"],
            landing_page_url=row["landing_page_url"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


# -----------------------------------------------------------------------------
# Session Store
# -----------------------------------------------------------------------------


class SQLiteSessionStore(SQLiteRepoBase):
    """SQLite implementation of SessionStorePort."""

    def insert(self, record: SessionRecord) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO page_sessions (
                    id, page_id, session_id, first_seen, last_seen,
                    referrer, user_agent,
                    utm_source, utm_medium, utm_campaign, utm_term, utm_content,
                    landing_page_url, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (page_id, session_id) DO NOTHING
                """,
                (
                    str(record.id),
                    record.page_id,
                    record.session_id,
                    format_dt(record.first_seen),
                    format_dt(record.last_seen),
                    record.referrer,
                    record.user_agent,
                    record.utm_source,
                    record.utm_medium,
                    record.utm_campaign,
                    record.utm_term,
                    record.utm_content,
                    record.landing_page_url,
                    format_dt(record.created_at),
                ),
            )
            if self._should_close():
                conn.commit()
        except sqlite3.Error as e:
            raise QueryError(f"Session insert failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()

    def touch(self, page_id: str, session_id: str, seen_at: datetime) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE page_sessions SET last_seen = ?
                WHERE page_id = ? AND session_id = ?
                """,
                (format_dt(seen_at), page_id, session_id),
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise QueryError(f"Session update failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()

    def select_range(self, page_id: str, date_range: DateRange) -> list[SessionRecord]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM page_sessions
                WHERE page_id = ? AND created_at >= ? AND created_at < ?
                ORDER BY created_at ASC, session_id ASC
                """,
                (page_id, format_dt(date_range.start), format_dt(date_range.end)),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        except sqlite3.Error as e:
            raise QueryError(f"Session query failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> SessionRecord:
        return SessionRecord(
            id=UUID(row["id"]),
            page_id=row["page_id"],
            session_id=row["session_id"],
            first_seen=parse_dt(row["first_seen"]),
            last_seen=parse_dt(row["last_seen"]),
            referrer=row["referrer"],
            user_agent=row["user_agent"],
            utm_source=row["utm_source"],
            utm_medium=row["utm_medium"],
            utm_campaign=row["utm_campaign"],
            utm_term=row["utm_term"],
            utm_content=row["utm_content"],
            landing_page_url=row["landing_page_url"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
