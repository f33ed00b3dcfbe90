"""
In-memory adapters for testing/dev.

Implements KeyValueStorePort, EventStorePort and SessionStorePort.
"""

from __future__ import annotations

from datetime import datetime

from presell_analytics.core.entities import (
    AnalyticsEvent,
    DateRange,
    EventType,
    SessionRecord,
    ensure_utc,
)


class InMemoryKeyValueStore:
    """In-memory key-value store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self._data.clear()


class InMemoryEventStore:
    """In-memory append-only event store."""

    def __init__(self) -> None:
        self._events: list[AnalyticsEvent] = []

    def insert(self, event: AnalyticsEvent) -> None:
        self._events.append(event)

    def select_range(
        self,
        page_id: str,
        date_range: DateRange,
        event_type: EventType | None = None,
    ) -> list[AnalyticsEvent]:
        results = [
            e
            for e in self._events
            if e.page_id == page_id
            and date_range.contains(e.created_at)
            and (event_type is None or e.event_type == event_type)
        ]
        return sorted(results, key=lambda e: ensure_utc(e.created_at))

    def all(self) -> list[AnalyticsEvent]:
        """Return every stored event (for testing)."""
        return list(self._events)


class InMemorySessionStore:
    """In-memory session record store."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], SessionRecord] = {}

    def insert(self, record: SessionRecord) -> None:
        self._records.setdefault((record.page_id, record.session_id), record)

    def touch(self, page_id: str, session_id: str, seen_at: datetime) -> bool:
        record = self._records.get((page_id, session_id))
        if record is None:
            return False
        self._records[(page_id, session_id)] = record.model_copy(update={"last_seen": seen_at})
        return True

    def select_range(self, page_id: str, date_range: DateRange) -> list[SessionRecord]:
        results = [
            r
            for r in self._records.values()
            if r.page_id == page_id and date_range.contains(r.created_at)
        ]
        return sorted(results, key=lambda r: (ensure_utc(r.created_at), r.session_id))

    def get(self, page_id: str, session_id: str) -> SessionRecord | None:
        """Lookup a single record (for testing)."""
        return self._records.get((page_id, session_id))
