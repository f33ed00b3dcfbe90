"""
Integration tests for the SQLite event and session stores.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import pytest

from presell_analytics.adapters.sqlite_db import SQLiteEventStore, SQLiteSessionStore
from presell_analytics.components.funnel import create_funnel_aggregator
from presell_analytics.components.summary import create_summary_aggregator
from presell_analytics.core.entities import AnalyticsEvent, DateRange, SessionRecord
from presell_analytics.core.ports.stores import AnalyticsQueryError, QueryError

PAGE = "page-1"
T0 = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)
RANGE = DateRange(start=datetime(2025, 6, 1, tzinfo=UTC), end=datetime(2025, 7, 1, tzinfo=UTC))


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "analytics.db")
    SQLiteEventStore(path).ensure_schema()
    return path


@pytest.fixture
def events(db_path: str) -> SQLiteEventStore:
    return SQLiteEventStore(db_path)


@pytest.fixture
def sessions(db_path: str) -> SQLiteSessionStore:
    return SQLiteSessionStore(db_path)


class TestSQLiteEventStore:
    """page_analytics round trips and range queries."""

    def test_insert_and_select(self, events: SQLiteEventStore) -> None:
        event = AnalyticsEvent(
            page_id=PAGE,
            session_id="s1",
            event_type="click",
            element_id="final_cta",
            utm_source="facebook",
            landing_page_url="https://example.com/p?utm_source=facebook",
            created_at=T0,
        )
        events.insert(event)

        loaded = events.select_range(PAGE, RANGE)

        assert loaded == [event]

    def test_half_open_range(self, events: SQLiteEventStore) -> None:
        events.insert(AnalyticsEvent(page_id=PAGE, event_type="view", created_at=RANGE.start))
        events.insert(AnalyticsEvent(page_id=PAGE, event_type="view", created_at=RANGE.end))

        loaded = events.select_range(PAGE, RANGE)

        assert [e.created_at for e in loaded] == [RANGE.start]

    def test_filters_by_type_and_orders(self, events: SQLiteEventStore) -> None:
        events.insert(AnalyticsEvent(page_id=PAGE, event_type="view", created_at=T0 + timedelta(minutes=5)))
        events.insert(AnalyticsEvent(page_id=PAGE, event_type="view", created_at=T0))
        events.insert(AnalyticsEvent(page_id=PAGE, event_type="scroll", scroll_depth=25, created_at=T0))

        views = events.select_range(PAGE, RANGE, event_type="view")

        assert [e.created_at for e in views] == [T0, T0 + timedelta(minutes=5)]

    def test_non_utc_input_normalized(self, events: SQLiteEventStore) -> None:
        local = T0.astimezone(timezone(timedelta(hours=10)))
        events.insert(AnalyticsEvent(page_id=PAGE, event_type="view", created_at=local))

        assert events.select_range(PAGE, RANGE)[0].created_at == T0

    def test_missing_schema_raises_query_error(self, tmp_path: Path) -> None:
        store = SQLiteEventStore(str(tmp_path / "empty.db"))

        with pytest.raises(QueryError):
            store.select_range(PAGE, RANGE)


class TestSQLiteSessionStore:
    """page_sessions uniqueness and last_seen updates."""

    def record(self, session_id: str = "s1", **kwargs: object) -> SessionRecord:
        return SessionRecord(
            page_id=PAGE,
            session_id=session_id,
            first_seen=T0,
            last_seen=T0,
            created_at=T0,
            **kwargs,  # type: ignore[arg-type]
        )

    def test_insert_once_per_session(self, sessions: SQLiteSessionStore) -> None:
        sessions.insert(self.record(utm_source="facebook"))
        sessions.insert(self.record(utm_source="google"))

        loaded = sessions.select_range(PAGE, RANGE)

        assert len(loaded) == 1
        assert loaded[0].utm_source == "facebook"

    def test_touch(self, sessions: SQLiteSessionStore) -> None:
        sessions.insert(self.record())
        later = T0 + timedelta(seconds=75)

        assert sessions.touch(PAGE, "s1", later) is True
        assert sessions.touch(PAGE, "missing", later) is False
        assert sessions.select_range(PAGE, RANGE)[0].last_seen == later


class TestAggregatorsOverSQLite:
    """Funnel and summary against real tables."""

    def test_funnel_and_summary(self, events: SQLiteEventStore, sessions: SQLiteSessionStore) -> None:
        for i, sid in enumerate(["a", "b", "c", "d"]):
            sessions.insert(
                SessionRecord(
                    page_id=PAGE,
                    session_id=sid,
                    first_seen=T0,
                    last_seen=T0 + timedelta(seconds=30 * (i + 1)),
                    created_at=T0,
                )
            )
            events.insert(AnalyticsEvent(page_id=PAGE, session_id=sid, event_type="view", created_at=T0))
        events.insert(
            AnalyticsEvent(page_id=PAGE, session_id="a", event_type="click", element_id="final_cta", created_at=T0)
        )

        funnel = create_funnel_aggregator(events, sessions).compute_funnel(PAGE, RANGE)
        summary = create_summary_aggregator(events).compute_summary(PAGE, RANGE)

        assert funnel.unique_visitors == 4
        assert funnel.ctr == pytest.approx(25.0)
        assert funnel.avg_dwell_seconds == pytest.approx(75.0)
        assert summary.total_views == 4
        assert summary.ctr_percentage == pytest.approx(25.0)

    def test_unreachable_database(self, tmp_path: Path) -> None:
        path = str(tmp_path / "no_tables.db")
        aggregator = create_funnel_aggregator(SQLiteEventStore(path), SQLiteSessionStore(path))

        with pytest.raises(AnalyticsQueryError):
            aggregator.compute_funnel(PAGE, RANGE)
