"""
Tests for threshold alerts.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from presell_analytics.components.alerts import (
    Alert,
    AlertConfig,
    default_alert_configs,
    evaluate_alerts,
)
from presell_analytics.components.summary import SummaryReport

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def summary(
    views: int = 0,
    clicks: int = 0,
    missing_utm: int = 0,
) -> SummaryReport:
    return SummaryReport(
        page_id="page-1",
        start=NOW - timedelta(days=30),
        end=NOW,
        total_views=views,
        total_clicks=clicks,
        ctr_percentage=clicks / views * 100 if views else 0.0,
        missing_utm_views=missing_utm,
        daily=(),
        elements=(),
        traffic_sources=(),
        devices=(),
        browsers=(),
        campaigns=(),
    )


def previous(alert_type: str, at: datetime) -> Alert:
    return Alert(
        alert_type=alert_type,  # type: ignore[arg-type]
        message="earlier",
        value=1,
        threshold=0,
        triggered_at=at,
    )


class TestEvaluateAlerts:
    """Threshold checks."""

    def test_nothing_triggers_on_quiet_page(self) -> None:
        assert evaluate_alerts(default_alert_configs(), summary(views=10), [], NOW) == []

    def test_missing_utm(self) -> None:
        alerts = evaluate_alerts(default_alert_configs(), summary(views=3, missing_utm=2), [], NOW)

        assert [a.alert_type for a in alerts] == ["missing_utm"]
        assert alerts[0].value == 2
        assert alerts[0].triggered_at == NOW

    def test_missing_utm_ignores_configured_threshold(self) -> None:
        configs = [AlertConfig("missing_utm", threshold=50)]

        alerts = evaluate_alerts(configs, summary(views=3, missing_utm=1), [], NOW)

        assert [a.alert_type for a in alerts] == ["missing_utm"]
        assert alerts[0].threshold == 0

    def test_strictly_greater_than_threshold(self) -> None:
        configs = [AlertConfig("views_threshold", threshold=1000)]

        assert evaluate_alerts(configs, summary(views=1000), [], NOW) == []
        assert len(evaluate_alerts(configs, summary(views=1001), [], NOW)) == 1

    def test_ctr_and_clicks(self) -> None:
        alerts = evaluate_alerts(default_alert_configs(), summary(views=1000, clicks=101), [], NOW)

        assert {a.alert_type for a in alerts} == {"ctr_threshold", "clicks_threshold"}

    def test_disabled_config_skipped(self) -> None:
        configs = [AlertConfig("missing_utm", enabled=False)]

        assert evaluate_alerts(configs, summary(views=5, missing_utm=5), [], NOW) == []

    def test_default_threshold_when_unset(self) -> None:
        configs = [AlertConfig("ctr_threshold")]

        alerts = evaluate_alerts(configs, summary(views=100, clicks=6), [], NOW)

        assert alerts[0].threshold == 5


class TestRetrigger:
    """A type that fired within the window is skipped."""

    def test_recent_alert_suppresses(self) -> None:
        history = [previous("missing_utm", NOW - timedelta(minutes=30))]

        assert evaluate_alerts(default_alert_configs(), summary(views=1, missing_utm=1), history, NOW) == []

    def test_old_alert_does_not_suppress(self) -> None:
        history = [previous("missing_utm", NOW - timedelta(hours=2))]

        alerts = evaluate_alerts(default_alert_configs(), summary(views=1, missing_utm=1), history, NOW)

        assert len(alerts) == 1

    def test_custom_window(self) -> None:
        history = [previous("missing_utm", NOW - timedelta(hours=2))]

        alerts = evaluate_alerts(
            default_alert_configs(),
            summary(views=1, missing_utm=1),
            history,
            NOW,
            retrigger_window_seconds=3 * 3600,
        )

        assert alerts == []

    def test_duplicate_configs_fire_once(self) -> None:
        configs = [AlertConfig("missing_utm"), AlertConfig("missing_utm")]

        assert len(evaluate_alerts(configs, summary(views=1, missing_utm=1), [], NOW)) == 1
