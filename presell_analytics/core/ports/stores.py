"""
Event Store and Session Store ports.

Both stores are external collaborators (a managed database in production).
Aggregators only read from them; the tracking layer appends to them.

Raises:
    QueryError: adapters raise this when the backing store is unreachable
    or a query fails. Aggregators surface it to their caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from presell_analytics.core.entities import (
    AnalyticsEvent,
    DateRange,
    EventType,
    SessionRecord,
)


class QueryError(Exception):
    """A store could not be queried or written."""


class AnalyticsQueryError(Exception):
    """An aggregation could not load its data. There is no safe fallback value."""

    def __init__(self, operation: str, page_id: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.page_id = page_id
        self.cause = cause
        super().__init__(f"{operation} failed for page {page_id}: {cause}")


class EventStorePort(Protocol):
    """Append-only analytics event table."""

    def insert(self, event: AnalyticsEvent) -> None:
        """Append an event."""
        ...

    def select_range(
        self,
        page_id: str,
        date_range: DateRange,
        event_type: EventType | None = None,
    ) -> list[AnalyticsEvent]:
        """Return events for page_id created inside date_range, oldest first."""
        ...


class SessionStorePort(Protocol):
    """Per (page, session) first/last-seen records."""

    def insert(self, record: SessionRecord) -> None:
        """Insert a new session record."""
        ...

    def touch(self, page_id: str, session_id: str, seen_at: datetime) -> bool:
        """Advance last_seen for an existing record. Returns False if none exists."""
        ...

    def select_range(self, page_id: str, date_range: DateRange) -> list[SessionRecord]:
        """Return records for page_id whose created_at is inside date_range."""
        ...
