"""
Funnel component - session-based conversion funnel for a page.

Invariants:
- Stage counts are distinct sessions, never raw event counts
- Every stage count is <= the count of the stage before it
- 0 <= conversion_rate <= 1; drop_off_rate = 1 - conversion_rate,
  both 0 when the previous stage is empty
- Query failures raise AnalyticsQueryError; there is no zero fallback

Stage membership:
- View: sessions with a session record or any event in range
- ScrollN: sessions with a scroll event of depth >= N (a deeper milestone
  implies the shallower ones were passed)
- Click: sessions with a click event
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from presell_analytics.core.entities import (
    SCROLL_DEPTHS,
    AnalyticsEvent,
    DateRange,
    SessionRecord,
    ensure_utc,
)
from presell_analytics.core.ports.stores import (
    AnalyticsQueryError,
    EventStorePort,
    SessionStorePort,
)

from .models import FunnelSnapshot, FunnelStage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunnelConfig:
    """Funnel configuration."""

    # Sessions longer than this are excluded from dwell time
    max_dwell_seconds: float = 3600.0


DEFAULT_CONFIG = FunnelConfig()


# --- Pure Calculations ---


def stage_rates(count: int, previous: int) -> tuple[float, float]:
    """Return (conversion_rate, drop_off_rate) of count relative to previous."""
    if previous <= 0:
        return 0.0, 0.0
    conversion = min(count / previous, 1.0)
    return conversion, 1.0 - conversion


def build_stages(names: Sequence[str], counts: Sequence[int]) -> tuple[FunnelStage, ...]:
    """Chain stages so each one's rates are relative to its predecessor."""
    stages = []
    previous = counts[0] if counts else 0
    for name, count in zip(names, counts, strict=True):
        conversion, drop_off = stage_rates(count, previous)
        stages.append(
            FunnelStage(
                name=name,
                count=count,
                conversion_rate=conversion,
                drop_off_rate=drop_off,
            )
        )
        previous = count
    return tuple(stages)


def average_dwell_seconds(
    sessions: Sequence[SessionRecord],
    max_dwell_seconds: float = DEFAULT_CONFIG.max_dwell_seconds,
) -> float:
    """Average last_seen - first_seen over sessions within (0, max_dwell_seconds]."""
    durations = []
    for s in sessions:
        if s.first_seen is None or s.last_seen is None:
            continue
        seconds = (ensure_utc(s.last_seen) - ensure_utc(s.first_seen)).total_seconds()
        if 0 < seconds <= max_dwell_seconds:
            durations.append(seconds)

    if not durations:
        return 0.0
    return sum(durations) / len(durations)


def sessions_with(events: Sequence[AnalyticsEvent], event_type: str) -> set[str]:
    """Distinct session ids that fired event_type."""
    return {e.session_id for e in events if e.event_type == event_type and e.session_id}


def scroll_reach(events: Sequence[AnalyticsEvent]) -> dict[int, set[str]]:
    """Distinct sessions reaching each scroll milestone."""
    max_depth: dict[str, int] = {}
    for e in events:
        if e.event_type != "scroll" or not e.session_id or e.scroll_depth is None:
            continue
        max_depth[e.session_id] = max(max_depth.get(e.session_id, 0), e.scroll_depth)

    return {
        depth: {sid for sid, reached in max_depth.items() if reached >= depth}
        for depth in SCROLL_DEPTHS
    }


# --- Aggregator ---


class FunnelAggregator:
    """Computes FunnelSnapshots from the Event and Session stores."""

    def __init__(
        self,
        event_store: EventStorePort,
        session_store: SessionStorePort,
        config: FunnelConfig | None = None,
    ) -> None:
        self._events = event_store
        self._sessions = session_store
        self._config = config or DEFAULT_CONFIG

    def _load(
        self, page_id: str, date_range: DateRange
    ) -> tuple[list[SessionRecord], list[AnalyticsEvent]]:
        try:
            sessions = self._sessions.select_range(page_id, date_range)
            events = self._events.select_range(page_id, date_range)
        except Exception as e:
            logger.error("Funnel query failed for page %s: %s", page_id, e)
            raise AnalyticsQueryError("funnel", page_id, e) from e
        return sessions, events

    def compute_funnel(self, page_id: str, date_range: DateRange) -> FunnelSnapshot:
        """Compute the funnel for page_id over date_range."""
        sessions, events = self._load(page_id, date_range)

        visitors = {s.session_id for s in sessions}
        visitors.update(e.session_id for e in events if e.session_id)

        clicks = sessions_with(events, "click")
        reach = scroll_reach(events)

        unique_visitors = len(visitors)
        ctr = len(clicks) / unique_visitors * 100 if unique_visitors else 0.0

        scroll_counts = [unique_visitors] + [len(reach[d]) for d in SCROLL_DEPTHS]
        scroll_names = ["View"] + [f"Scroll {d}%" for d in SCROLL_DEPTHS]

        return FunnelSnapshot(
            page_id=page_id,
            start=date_range.start,
            end=date_range.end,
            unique_visitors=unique_visitors,
            avg_dwell_seconds=average_dwell_seconds(sessions, self._config.max_dwell_seconds),
            click_sessions=len(clicks),
            scroll25_sessions=len(reach[25]),
            scroll50_sessions=len(reach[50]),
            scroll75_sessions=len(reach[75]),
            scroll100_sessions=len(reach[100]),
            ctr=ctr,
            scroll_stages=build_stages(scroll_names, scroll_counts),
            click_stages=build_stages(["View", "Click"], [unique_visitors, len(clicks)]),
        )


# --- Factory ---


def create_funnel_aggregator(
    event_store: EventStorePort,
    session_store: SessionStorePort,
    config: FunnelConfig | None = None,
) -> FunnelAggregator:
    """Create a FunnelAggregator."""
    return FunnelAggregator(event_store=event_store, session_store=session_store, config=config)
