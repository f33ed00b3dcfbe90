"""
Tests for PageTracker event recording.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from presell_analytics.adapters.memory import (
    InMemoryEventStore,
    InMemoryKeyValueStore,
    InMemorySessionStore,
)
from presell_analytics.components.attribution import AttributionResolver
from presell_analytics.components.session import SessionIdentity
from presell_analytics.components.tracking import PageTracker, create_page_tracker
from tests.fakes import (
    FailingEventStore,
    FailingSessionStore,
    FixedClock,
    MarkRejectingKeyValueStore,
)

PAGE = "page-1"
PAGE_URL = "https://presell.example.com/p/offer"
CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@pytest.fixture
def tracker(
    event_store: InMemoryEventStore,
    session_store: InMemorySessionStore,
    resolver: AttributionResolver,
    identity: SessionIdentity,
    clock: FixedClock,
) -> PageTracker:
    return create_page_tracker(event_store, session_store, resolver, identity, clock)


class TestTrackPageLoad:
    """Page loads record a view and open the session record once."""

    def test_records_view_with_attribution(
        self, tracker: PageTracker, event_store: InMemoryEventStore
    ) -> None:
        result = tracker.track_page_load(
            PAGE,
            f"{PAGE_URL}?utm_source=facebook&utm_campaign=spring",
            referrer_url="https://www.facebook.com/",
            user_agent=CHROME_UA,
        )

        assert result.recorded is True
        assert result.attribution_source == "url"
        events = event_store.all()
        assert len(events) == 1
        view = events[0]
        assert view.event_type == "view"
        assert view.session_id == result.session_id
        assert view.utm_source == "facebook"
        assert view.utm_campaign == "spring"
        assert view.landing_page_url == f"{PAGE_URL}?utm_source=facebook&utm_campaign=spring"
        assert view.referrer == "https://www.facebook.com/"
        assert view.user_agent == CHROME_UA

    def test_first_view_creates_session_record(
        self,
        tracker: PageTracker,
        session_store: InMemorySessionStore,
        kv: InMemoryKeyValueStore,
        clock: FixedClock,
    ) -> None:
        result = tracker.track_page_load(PAGE, f"{PAGE_URL}?utm_source=google")

        record = session_store.get(PAGE, result.session_id)
        assert result.first_view is True
        assert record is not None
        assert record.first_seen == clock.now
        assert record.last_seen == clock.now
        assert record.utm_source == "google"
        assert kv.get(f"als_session_recorded_{PAGE}") == "true"

    def test_repeat_view_only_advances_last_seen(
        self,
        tracker: PageTracker,
        session_store: InMemorySessionStore,
        event_store: InMemoryEventStore,
        clock: FixedClock,
    ) -> None:
        first = tracker.track_page_load(PAGE, PAGE_URL)
        started = clock.now
        clock.advance(seconds=45)

        second = tracker.track_page_load(PAGE, PAGE_URL)

        record = session_store.get(PAGE, first.session_id)
        assert second.first_view is False
        assert second.session_id == first.session_id
        assert record.first_seen == started  # type: ignore[union-attr]
        assert record.last_seen == clock.now  # type: ignore[union-attr]
        assert len(event_store.all()) == 2

    def test_stored_attribution_on_return_visit(self, tracker: PageTracker) -> None:
        tracker.track_page_load(PAGE, f"{PAGE_URL}?utm_source=facebook")

        result = tracker.track_page_load(PAGE, PAGE_URL)

        assert result.attribution_source == "stored"
        assert result.attribution.source == "facebook"


class TestTrackClick:
    """Click events."""

    def test_click_carries_element_and_attribution(
        self, tracker: PageTracker, event_store: InMemoryEventStore
    ) -> None:
        tracker.track_page_load(PAGE, f"{PAGE_URL}?utm_source=facebook")

        result = tracker.track_click(PAGE, "final_cta")

        click = event_store.all()[-1]
        assert result.recorded is True
        assert click.event_type == "click"
        assert click.element_id == "final_cta"
        assert click.utm_source == "facebook"

    def test_click_advances_last_seen(
        self,
        tracker: PageTracker,
        session_store: InMemorySessionStore,
        clock: FixedClock,
    ) -> None:
        load = tracker.track_page_load(PAGE, PAGE_URL)
        clock.advance(seconds=90)

        tracker.track_click(PAGE, "sticky_button")

        assert session_store.get(PAGE, load.session_id).last_seen == clock.now  # type: ignore[union-attr]

    def test_click_without_page_load(
        self, tracker: PageTracker, event_store: InMemoryEventStore
    ) -> None:
        result = tracker.track_click(PAGE)

        assert result.recorded is True
        assert event_store.all()[0].session_id is not None
        assert event_store.all()[0].element_id is None


class TestTrackScroll:
    """Scroll milestones."""

    def test_records_milestone(self, tracker: PageTracker, event_store: InMemoryEventStore) -> None:
        tracker.track_page_load(PAGE, PAGE_URL)

        result = tracker.track_scroll(PAGE, 50)

        assert result.recorded is True
        assert event_store.all()[-1].scroll_depth == 50

    def test_invalid_depth_rejected(
        self, tracker: PageTracker, event_store: InMemoryEventStore
    ) -> None:
        result = tracker.track_scroll(PAGE, 30)

        assert result.recorded is False
        assert result.errors[0].code == "invalid_scroll_depth"
        assert result.errors[0].field_name == "scroll_depth"
        assert event_store.all() == []

    def test_milestone_sent_once(self, tracker: PageTracker, event_store: InMemoryEventStore) -> None:
        tracker.track_page_load(PAGE, PAGE_URL)
        tracker.track_scroll(PAGE, 25)

        result = tracker.track_scroll(PAGE, 25)

        assert result.recorded is False
        assert result.errors == []
        assert sum(1 for e in event_store.all() if e.event_type == "scroll") == 1


class TestFireAndForget:
    """Store failures never reach the caller."""

    def test_failing_event_store(
        self,
        session_store: InMemorySessionStore,
        resolver: AttributionResolver,
        identity: SessionIdentity,
        clock: FixedClock,
    ) -> None:
        tracker = PageTracker(FailingEventStore(), session_store, resolver, identity, clock)

        load = tracker.track_page_load(PAGE, PAGE_URL)
        click = tracker.track_click(PAGE, "final_cta")
        scroll = tracker.track_scroll(PAGE, 25)

        assert load.recorded is False
        assert click.recorded is False
        assert scroll.recorded is False

    def test_failing_session_store(
        self,
        event_store: InMemoryEventStore,
        resolver: AttributionResolver,
        identity: SessionIdentity,
        clock: FixedClock,
    ) -> None:
        tracker = PageTracker(event_store, FailingSessionStore(), resolver, identity, clock)

        result = tracker.track_page_load(PAGE, PAGE_URL)

        assert result.recorded is True
        assert result.first_view is False
        assert identity.is_recorded(PAGE) is False

    def test_lost_recorded_mark_still_advances_last_seen(
        self,
        event_store: InMemoryEventStore,
        session_store: InMemorySessionStore,
        resolver: AttributionResolver,
        clock: FixedClock,
    ) -> None:
        identity = SessionIdentity(MarkRejectingKeyValueStore(), clock)
        tracker = PageTracker(event_store, session_store, resolver, identity, clock)

        first = tracker.track_page_load(PAGE, PAGE_URL)
        started = clock.now
        clock.advance(seconds=120)
        second = tracker.track_page_load(PAGE, PAGE_URL)

        record = session_store.get(PAGE, first.session_id)
        assert second.session_id == first.session_id
        assert record.first_seen == started  # type: ignore[union-attr]
        assert record.last_seen == clock.now  # type: ignore[union-attr]


class TestOutboundUrl:
    """CTA links carry the visit's UTM fields."""

    def test_appends_attribution(self, tracker: PageTracker) -> None:
        tracker.track_page_load(PAGE, f"{PAGE_URL}?utm_source=facebook&utm_medium=paid")

        url = tracker.outbound_url(PAGE, "https://store.example.com/buy")

        query = parse_qs(urlsplit(url).query)
        assert query["utm_source"] == ["facebook"]
        assert query["utm_medium"] == ["paid"]

    def test_unknown_page_unchanged(self, tracker: PageTracker) -> None:
        assert tracker.outbound_url("other", "https://store.example.com/") == "https://store.example.com/"
