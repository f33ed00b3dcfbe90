"""
Alerts component - threshold checks over a SummaryReport.

An enabled alert fires when its metric strictly exceeds the threshold
(missing_utm fires on any view without utm_source). A type that already
fired within the retrigger window is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from presell_analytics.components.summary import SummaryReport
from presell_analytics.core.entities import ensure_utc

from .models import Alert, AlertConfig, AlertType

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS: dict[AlertType, float] = {
    "missing_utm": 0,
    "ctr_threshold": 5,
    "clicks_threshold": 100,
    "views_threshold": 1000,
}

DEFAULT_RETRIGGER_WINDOW_SECONDS = 3600


def default_alert_configs() -> list[AlertConfig]:
    """One enabled config per alert type with the default thresholds."""
    return [AlertConfig(alert_type=t, threshold=v) for t, v in DEFAULT_THRESHOLDS.items()]


def _metric(alert_type: AlertType, summary: SummaryReport) -> float:
    if alert_type == "missing_utm":
        return summary.missing_utm_views
    if alert_type == "ctr_threshold":
        return summary.ctr_percentage
    if alert_type == "clicks_threshold":
        return summary.total_clicks
    return summary.total_views


def _message(alert_type: AlertType, value: float, threshold: float) -> str:
    if alert_type == "missing_utm":
        return f"{int(value)} views without UTM parameters"
    if alert_type == "ctr_threshold":
        return f"CTR {value:.2f}% exceeded {threshold:g}%"
    if alert_type == "clicks_threshold":
        return f"{int(value)} clicks exceeded {threshold:g}"
    return f"{int(value)} views exceeded {threshold:g}"


def recently_triggered(
    history: Iterable[Alert],
    now: datetime,
    window_seconds: float = DEFAULT_RETRIGGER_WINDOW_SECONDS,
) -> set[AlertType]:
    """Alert types triggered within window_seconds before now."""
    cutoff = ensure_utc(now) - timedelta(seconds=window_seconds)
    return {a.alert_type for a in history if ensure_utc(a.triggered_at) > cutoff}


def evaluate_alerts(
    configs: Sequence[AlertConfig],
    summary: SummaryReport,
    history: Iterable[Alert],
    now: datetime,
    retrigger_window_seconds: float = DEFAULT_RETRIGGER_WINDOW_SECONDS,
) -> list[Alert]:
    """Return the new alerts for summary, in config order."""
    skip = recently_triggered(history, now, retrigger_window_seconds)
    alerts = []

    for config in configs:
        if not config.enabled or config.alert_type in skip:
            continue

        threshold = config.threshold
        if config.alert_type == "missing_utm":
            threshold = 0
        elif threshold is None:
            threshold = DEFAULT_THRESHOLDS[config.alert_type]

        value = _metric(config.alert_type, summary)
        if value <= threshold:
            continue

        alerts.append(
            Alert(
                alert_type=config.alert_type,
                message=_message(config.alert_type, value, threshold),
                value=value,
                threshold=threshold,
                triggered_at=ensure_utc(now),
            )
        )
        skip.add(config.alert_type)
        logger.info("Alert %s triggered for page %s", config.alert_type, summary.page_id)

    return alerts
