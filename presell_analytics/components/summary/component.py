"""
Summary component - totals and breakdowns over a date range.

Key behaviors:
- Totals count raw view/click events; CTR = clicks / views * 100
- Daily series groups by calendar date in the display timezone
- Element breakdown substitutes "untracked" for clicks without element_id
- Traffic sources: Direct (no referrer), Internal (own host), a referrer
  rule's source, or Other
- Device and browser breakdowns use the ordered user agent rules
- Campaigns group view/click events that carry utm_source

All breakdowns are sorted deterministically, so identical inputs give
identical reports. Empty ranges give empty series, never an error.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from presell_analytics.core.entities import AnalyticsEvent, DateRange, ensure_utc
from presell_analytics.core.ports.stores import AnalyticsQueryError, EventStorePort
from presell_analytics.core.services.referrer import (
    DEFAULT_CONFIG as DEFAULT_REFERRER_CONFIG,
)
from presell_analytics.core.services.referrer import (
    ReferrerConfig,
    match_referrer_rule,
    referrer_host,
)
from presell_analytics.core.services.user_agent import classify_browser, classify_device

from .models import BreakdownItem, CampaignStat, DailyStat, ElementStat, SummaryReport

logger = logging.getLogger(__name__)

DIRECT = "Direct"
INTERNAL = "Internal"
OTHER = "Other"


@dataclass(frozen=True)
class SummaryConfig:
    """Summary configuration."""

    site_host: str | None = None
    display_timezone: str = "UTC"
    untracked_label: str = "untracked"
    referrer: ReferrerConfig = DEFAULT_REFERRER_CONFIG


DEFAULT_CONFIG = SummaryConfig()


# --- Pure Calculations ---


def percentage(part: int, whole: int) -> float:
    """part / whole * 100, or 0 when whole is 0."""
    return part / whole * 100 if whole else 0.0


def _bare_host(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def classify_traffic_source(
    referrer: str | None,
    site_host: str | None = None,
    config: ReferrerConfig = DEFAULT_REFERRER_CONFIG,
) -> str:
    """Bucket a view's referrer for the traffic-source breakdown."""
    if not referrer:
        return DIRECT

    host = referrer_host(referrer)
    if host is None:
        return OTHER

    if site_host and _bare_host(host) == _bare_host(site_host.lower()):
        return INTERNAL

    rule = match_referrer_rule(host, config)
    return rule.source if rule is not None else OTHER


def breakdown(labels: Iterable[str], total: int) -> tuple[BreakdownItem, ...]:
    """Count labels, highest first, with each label's share of total."""
    counts = Counter(labels)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        BreakdownItem(label=label, views=count, percentage=percentage(count, total))
        for label, count in ordered
    )


def daily_stats(events: Sequence[AnalyticsEvent], tz: ZoneInfo) -> tuple[DailyStat, ...]:
    """Views and clicks per local calendar day, oldest first."""
    by_date: dict[str, dict[str, int]] = {}
    for e in events:
        if e.event_type not in ("view", "click"):
            continue
        day = ensure_utc(e.created_at).astimezone(tz).date().isoformat()
        stats = by_date.setdefault(day, {"views": 0, "clicks": 0})
        if e.event_type == "view":
            stats["views"] += 1
        else:
            stats["clicks"] += 1

    return tuple(
        DailyStat(date=day, views=stats["views"], clicks=stats["clicks"])
        for day, stats in sorted(by_date.items())
    )


def element_stats(
    clicks: Sequence[AnalyticsEvent],
    untracked_label: str = "untracked",
) -> tuple[ElementStat, ...]:
    """Clicks per element, highest first."""
    counts = Counter(e.element_id or untracked_label for e in clicks)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(ElementStat(element_id=eid, click_count=count) for eid, count in ordered)


def campaign_stats(events: Sequence[AnalyticsEvent]) -> tuple[CampaignStat, ...]:
    """Views, clicks and CTR per (source, medium, campaign), most viewed first."""
    groups: dict[tuple[str, str | None, str | None], dict[str, int]] = {}
    for e in events:
        if not e.utm_source or e.event_type not in ("view", "click"):
            continue
        key = (e.utm_source, e.utm_medium, e.utm_campaign)
        stats = groups.setdefault(key, {"views": 0, "clicks": 0})
        if e.event_type == "view":
            stats["views"] += 1
        else:
            stats["clicks"] += 1

    def sort_key(item: tuple[tuple[str, str | None, str | None], dict[str, int]]) -> tuple:
        (source, medium, campaign), stats = item
        return (-stats["views"], -stats["clicks"], source, medium or "", campaign or "")

    return tuple(
        CampaignStat(
            source=source,
            medium=medium,
            campaign=campaign,
            views=stats["views"],
            clicks=stats["clicks"],
            ctr=percentage(stats["clicks"], stats["views"]),
        )
        for (source, medium, campaign), stats in sorted(groups.items(), key=sort_key)
    )


# --- Aggregator ---


class SummaryAggregator:
    """Computes SummaryReports from the Event Store."""

    def __init__(
        self,
        event_store: EventStorePort,
        config: SummaryConfig | None = None,
    ) -> None:
        self._events = event_store
        self._config = config or DEFAULT_CONFIG
        self._tz = ZoneInfo(self._config.display_timezone)

    def _load(self, page_id: str, date_range: DateRange) -> list[AnalyticsEvent]:
        try:
            return self._events.select_range(page_id, date_range)
        except Exception as e:
            logger.error("Summary query failed for page %s: %s", page_id, e)
            raise AnalyticsQueryError("summary", page_id, e) from e

    def compute_summary(
        self,
        page_id: str,
        date_range: DateRange,
        site_host: str | None = None,
    ) -> SummaryReport:
        """Compute the summary for page_id over date_range."""
        events = self._load(page_id, date_range)
        host = site_host or self._config.site_host

        views = [e for e in events if e.event_type == "view"]
        clicks = [e for e in events if e.event_type == "click"]
        total_views = len(views)

        def view_breakdown(label_of: Callable[[AnalyticsEvent], str]) -> tuple[BreakdownItem, ...]:
            return breakdown((label_of(v) for v in views), total_views)

        return SummaryReport(
            page_id=page_id,
            start=date_range.start,
            end=date_range.end,
            total_views=total_views,
            total_clicks=len(clicks),
            ctr_percentage=percentage(len(clicks), total_views),
            missing_utm_views=sum(1 for v in views if not v.utm_source),
            daily=daily_stats(events, self._tz),
            elements=element_stats(clicks, self._config.untracked_label),
            traffic_sources=view_breakdown(
                lambda v: classify_traffic_source(v.referrer, host, self._config.referrer)
            ),
            devices=view_breakdown(lambda v: classify_device(v.user_agent)),
            browsers=view_breakdown(lambda v: classify_browser(v.user_agent)),
            campaigns=campaign_stats(events),
        )


# --- Factory ---


def create_summary_aggregator(
    event_store: EventStorePort,
    config: SummaryConfig | None = None,
) -> SummaryAggregator:
    """Create a SummaryAggregator."""
    return SummaryAggregator(event_store=event_store, config=config)
