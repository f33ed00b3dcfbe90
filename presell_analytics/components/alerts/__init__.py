"""
Alerts component - threshold alerts over analytics summaries.
"""

from .component import (
    DEFAULT_RETRIGGER_WINDOW_SECONDS,
    DEFAULT_THRESHOLDS,
    default_alert_configs,
    evaluate_alerts,
    recently_triggered,
)
from .models import ALERT_TYPES, Alert, AlertConfig, AlertType

__all__ = [
    "ALERT_TYPES",
    "DEFAULT_RETRIGGER_WINDOW_SECONDS",
    "DEFAULT_THRESHOLDS",
    "Alert",
    "AlertConfig",
    "AlertType",
    "default_alert_configs",
    "evaluate_alerts",
    "recently_triggered",
]
