"""
Tracking component - records view, click and scroll events for a page.

Invariants:
- Every write is fire-and-forget: store failures are logged and reported
  as recorded=False, never raised to the page
- The first view of a session on a page creates its session record once;
  later events only advance last_seen
- Each scroll milestone (25/50/75/100) is emitted at most once per page
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from presell_analytics.components.attribution import (
    AttributionRecord,
    AttributionResolver,
    append_utm_to_url,
)
from presell_analytics.components.session import SessionIdentity
from presell_analytics.core.entities import (
    SCROLL_DEPTHS,
    AnalyticsEvent,
    EventType,
    SessionRecord,
)
from presell_analytics.core.ports.stores import EventStorePort, SessionStorePort
from presell_analytics.core.ports.time import TimePort

from .models import PageLoadResult, TrackingError, TrackResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PageContext:
    """What a page load resolved, reused by later events on the same page."""

    session_id: str
    attribution: AttributionRecord
    referrer: str | None
    user_agent: str | None


class PageTracker:
    """Records analytics events for one visitor's browser."""

    def __init__(
        self,
        event_store: EventStorePort,
        session_store: SessionStorePort,
        resolver: AttributionResolver,
        identity: SessionIdentity,
        clock: TimePort,
    ) -> None:
        self._events = event_store
        self._sessions = session_store
        self._resolver = resolver
        self._identity = identity
        self._clock = clock
        self._pages: dict[str, _PageContext] = {}
        self._scrolls_sent: set[tuple[str, int]] = set()

    # --- Writes (never raise) ---

    def _append(self, event: AnalyticsEvent) -> bool:
        try:
            self._events.insert(event)
        except Exception as e:
            logger.warning("Error tracking %s on page %s: %s", event.event_type, event.page_id, e)
            return False
        return True

    def _start_session(self, page_id: str, ctx: _PageContext) -> bool:
        now = self._clock.now_utc()
        record = SessionRecord(
            page_id=page_id,
            session_id=ctx.session_id,
            first_seen=now,
            last_seen=now,
            referrer=ctx.referrer,
            user_agent=ctx.user_agent,
            utm_source=ctx.attribution.source,
            utm_medium=ctx.attribution.medium,
            utm_campaign=ctx.attribution.campaign,
            utm_term=ctx.attribution.term,
            utm_content=ctx.attribution.content,
            landing_page_url=ctx.attribution.landing_page_url,
            created_at=now,
        )
        try:
            self._sessions.insert(record)
        except Exception as e:
            logger.warning("Error recording session for page %s: %s", page_id, e)
            return False

        # Insert is a no-op when the record exists already, e.g. after a lost mark.
        self._touch(page_id, ctx.session_id)
        self._identity.mark_recorded(page_id)
        return True

    def _touch(self, page_id: str, session_id: str) -> None:
        try:
            self._sessions.touch(page_id, session_id, self._clock.now_utc())
        except Exception as e:
            logger.warning("Error updating session for page %s: %s", page_id, e)

    # --- Helpers ---

    def _context(self, page_id: str) -> _PageContext:
        ctx = self._pages.get(page_id)
        if ctx is None:
            ctx = _PageContext(
                session_id=self._identity.get_or_create_session_id(),
                attribution=AttributionRecord(),
                referrer=None,
                user_agent=None,
            )
            self._pages[page_id] = ctx
        return ctx

    def _build_event(
        self,
        page_id: str,
        event_type: EventType,
        ctx: _PageContext,
        element_id: str | None = None,
        scroll_depth: int | None = None,
    ) -> AnalyticsEvent:
        return AnalyticsEvent(
            page_id=page_id,
            session_id=ctx.session_id,
            event_type=event_type,
            element_id=element_id,
            scroll_depth=scroll_depth,
            referrer=ctx.referrer,
            user_agent=ctx.user_agent,
            utm_source=ctx.attribution.source,
            utm_medium=ctx.attribution.medium,
            utm_campaign=ctx.attribution.campaign,
            utm_term=ctx.attribution.term,
            utm_content=ctx.attribution.content,
            landing_page_url=ctx.attribution.landing_page_url,
            created_at=self._clock.now_utc(),
        )

    # --- Entry points ---

    def track_page_load(
        self,
        page_id: str,
        current_url: str,
        referrer_url: str | None = None,
        user_agent: str | None = None,
    ) -> PageLoadResult:
        """Resolve attribution and record a view for page_id."""
        resolved = self._resolver.resolve(current_url, referrer_url)
        ctx = _PageContext(
            session_id=self._identity.get_or_create_session_id(),
            attribution=resolved.record,
            referrer=referrer_url or None,
            user_agent=user_agent,
        )
        self._pages[page_id] = ctx

        recorded = self._append(self._build_event(page_id, "view", ctx))

        first_view = False
        if self._identity.is_recorded(page_id):
            self._touch(page_id, ctx.session_id)
        else:
            first_view = self._start_session(page_id, ctx)

        return PageLoadResult(
            session_id=ctx.session_id,
            attribution=resolved.record,
            attribution_source=resolved.source,
            recorded=recorded,
            first_view=first_view,
        )

    def track_click(self, page_id: str, element_id: str | None = None) -> TrackResult:
        """Record a click on element_id (e.g. "sticky_button", "final_cta")."""
        ctx = self._context(page_id)
        recorded = self._append(self._build_event(page_id, "click", ctx, element_id=element_id))
        if recorded:
            self._touch(page_id, ctx.session_id)
        return TrackResult(recorded=recorded)

    def track_scroll(self, page_id: str, depth: int) -> TrackResult:
        """Record a scroll-depth milestone."""
        if depth not in SCROLL_DEPTHS:
            return TrackResult(
                recorded=False,
                errors=[
                    TrackingError(
                        code="invalid_scroll_depth",
                        message=f"Scroll depth must be one of {list(SCROLL_DEPTHS)}",
                        field_name="scroll_depth",
                    )
                ],
            )

        if (page_id, depth) in self._scrolls_sent:
            return TrackResult(recorded=False)

        ctx = self._context(page_id)
        recorded = self._append(self._build_event(page_id, "scroll", ctx, scroll_depth=depth))
        if recorded:
            self._scrolls_sent.add((page_id, depth))
            self._touch(page_id, ctx.session_id)
        return TrackResult(recorded=recorded)

    def outbound_url(self, page_id: str, url: str) -> str:
        """CTA target with this visit's UTM fields appended."""
        ctx = self._pages.get(page_id)
        if ctx is None:
            return url
        return append_utm_to_url(url, ctx.attribution.fields)


# --- Factory ---


def create_page_tracker(
    event_store: EventStorePort,
    session_store: SessionStorePort,
    resolver: AttributionResolver,
    identity: SessionIdentity,
    clock: TimePort,
) -> PageTracker:
    """Create a PageTracker."""
    return PageTracker(
        event_store=event_store,
        session_store=session_store,
        resolver=resolver,
        identity=identity,
        clock=clock,
    )
