"""
Summary component models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class DailyStat:
    """Views and clicks for one calendar day (display timezone)."""

    date: str  # YYYY-MM-DD
    views: int
    clicks: int


@dataclass(frozen=True)
class ElementStat:
    """Clicks on one tracked element."""

    element_id: str
    click_count: int


@dataclass(frozen=True)
class BreakdownItem:
    """A labelled share of total views."""

    label: str
    views: int
    percentage: float


@dataclass(frozen=True)
class CampaignStat:
    """Performance of one (source, medium, campaign) triple."""

    source: str
    medium: str | None
    campaign: str | None
    views: int
    clicks: int
    ctr: float  # percentage


@dataclass(frozen=True)
class SummaryReport:
    """Analytics summary for one page over a date range."""

    page_id: str
    start: datetime
    end: datetime
    total_views: int
    total_clicks: int
    ctr_percentage: float
    missing_utm_views: int
    daily: tuple[DailyStat, ...]
    elements: tuple[ElementStat, ...]
    traffic_sources: tuple[BreakdownItem, ...]
    devices: tuple[BreakdownItem, ...]
    browsers: tuple[BreakdownItem, ...]
    campaigns: tuple[CampaignStat, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_id": self.page_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total_views": self.total_views,
            "total_clicks": self.total_clicks,
            "ctr_percentage": self.ctr_percentage,
            "missing_utm_views": self.missing_utm_views,
            "daily": [asdict(d) for d in self.daily],
            "elements": [asdict(e) for e in self.elements],
            "traffic_sources": [asdict(t) for t in self.traffic_sources],
            "devices": [asdict(d) for d in self.devices],
            "browsers": [asdict(b) for b in self.browsers],
            "campaigns": [asdict(c) for c in self.campaigns],
        }
