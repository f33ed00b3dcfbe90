"""
Alerts component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

AlertType = Literal["missing_utm", "ctr_threshold", "clicks_threshold", "views_threshold"]

ALERT_TYPES: tuple[AlertType, ...] = (
    "missing_utm",
    "ctr_threshold",
    "clicks_threshold",
    "views_threshold",
)


@dataclass(frozen=True)
class AlertConfig:
    """One configured alert for a page."""

    alert_type: AlertType
    threshold: float | None = None
    enabled: bool = True


@dataclass(frozen=True)
class Alert:
    """A triggered alert."""

    alert_type: AlertType
    message: str
    value: float
    threshold: float | None
    triggered_at: datetime
