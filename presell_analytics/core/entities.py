"""
Domain entities for presell analytics.

- AnalyticsEvent: append-only page event (view, click, scroll)
- SessionRecord: per (page, session) first/last-seen record
- DateRange: half-open reporting window

Invariants:
- Events are never mutated or deleted by the engine
- A click event carries element_id; a scroll event carries scroll_depth
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

__all__ = [
    "AnalyticsEvent",
    "DateRange",
    "EventType",
    "SCROLL_DEPTHS",
    "SessionRecord",
    "ensure_utc",
]


EventType = Literal["view", "click", "scroll"]

SCROLL_DEPTHS: tuple[int, ...] = (25, 50, 75, 100)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Events ---


class AnalyticsEvent(BaseModel):
    """A single tracked event on a published page."""

    id: UUID = Field(default_factory=uuid4)
    page_id: str
    session_id: str | None = None
    event_type: EventType
    element_id: str | None = None  # click only
    scroll_depth: int | None = None  # scroll only: 25, 50, 75, 100
    referrer: str | None = None
    user_agent: str | None = None

    # Attribution
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    landing_page_url: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)


# --- Sessions ---


class SessionRecord(BaseModel):
    """First/last seen tracking for one (page, session) pair."""

    id: UUID = Field(default_factory=uuid4)
    page_id: str
    session_id: str
    first_seen: datetime | None = None
    last_seen: datetime | None = None

    referrer: str | None = None
    user_agent: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    landing_page_url: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)


# --- Query Window ---


@dataclass(frozen=True)
class DateRange:
    """Reporting window: start inclusive, end exclusive, both UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.end < self.start:
            msg = f"Date range end {self.end.isoformat()} is before start {self.start.isoformat()}"
            raise ValueError(msg)

    def contains(self, moment: datetime) -> bool:
        """Check whether moment falls inside the window."""
        ts = ensure_utc(moment)
        return self.start <= ts < self.end
