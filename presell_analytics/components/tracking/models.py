"""
Tracking component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from presell_analytics.components.attribution import AttributionRecord, AttributionSource


@dataclass(frozen=True)
class TrackingError:
    """Tracking validation or write error."""

    code: str
    message: str
    field_name: str | None = None


@dataclass(frozen=True)
class PageLoadResult:
    """Outcome of tracking a page load."""

    session_id: str
    attribution: AttributionRecord
    attribution_source: AttributionSource
    recorded: bool
    first_view: bool = False


@dataclass(frozen=True)
class TrackResult:
    """Outcome of tracking a click or scroll event."""

    recorded: bool
    errors: list[TrackingError] = field(default_factory=list)
