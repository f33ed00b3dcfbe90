"""
Funnel component models.

FunnelSnapshot is derived per query and never persisted.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class FunnelStage:
    """One funnel step, with rates relative to the preceding step."""

    name: str
    count: int
    conversion_rate: float  # 0.0 to 1.0
    drop_off_rate: float  # 0.0 to 1.0


@dataclass(frozen=True)
class FunnelSnapshot:
    """Session-based funnel for one page over a date range."""

    page_id: str
    start: datetime
    end: datetime
    unique_visitors: int
    avg_dwell_seconds: float
    click_sessions: int
    scroll25_sessions: int
    scroll50_sessions: int
    scroll75_sessions: int
    scroll100_sessions: int
    ctr: float  # percentage
    scroll_stages: tuple[FunnelStage, ...]  # View -> Scroll25 -> ... -> Scroll100
    click_stages: tuple[FunnelStage, ...]  # View -> Click

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        data["scroll_stages"] = [asdict(s) for s in self.scroll_stages]
        data["click_stages"] = [asdict(s) for s in self.click_stages]
        return data
