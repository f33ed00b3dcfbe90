"""
Integration tests for the presell-analytics CLI.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from presell_analytics.adapters.sqlite_db import SQLiteEventStore
from presell_analytics.app_shell.cli import main
from presell_analytics.core.entities import AnalyticsEvent

PAGE = "page-1"
RANGE_ARGS = ["--start", "2025-06-01T00:00:00Z", "--end", "2025-07-01T00:00:00Z"]


@pytest.fixture
def db_path(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> str:
    path = str(tmp_path / "data" / "analytics.db")
    main(["--db", path, "init-db"])
    capsys.readouterr()

    store = SQLiteEventStore(path)
    at = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)
    for sid in ("a", "b"):
        store.insert(AnalyticsEvent(page_id=PAGE, session_id=sid, event_type="view", created_at=at))
    store.insert(
        AnalyticsEvent(page_id=PAGE, session_id="a", event_type="click", element_id="final_cta", created_at=at)
    )
    return path


def base_args(db_path: str, tmp_path: Path) -> list[str]:
    return ["--db", db_path, "--rules", str(tmp_path / "none.yaml")]


def run(capsys: pytest.CaptureFixture[str], *argv: str) -> dict:
    main(list(argv))
    return json.loads(capsys.readouterr().out)


class TestCli:
    """Reports printed as JSON."""

    def test_funnel(self, db_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        data = run(capsys, *base_args(db_path, tmp_path), "funnel", "--page", PAGE, *RANGE_ARGS)

        assert data["unique_visitors"] == 2
        assert data["ctr"] == pytest.approx(50.0)

    def test_summary(self, db_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        data = run(capsys, *base_args(db_path, tmp_path), "summary", "--page", PAGE, *RANGE_ARGS)

        assert data["total_views"] == 2
        assert data["missing_utm_views"] == 2
        assert data["elements"] == [{"element_id": "final_cta", "click_count": 1}]

    def test_alerts(self, db_path: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        data = run(capsys, *base_args(db_path, tmp_path), "alerts", "--page", PAGE, *RANGE_ARGS)

        types = {a["alert_type"] for a in data["alerts"]}
        assert types == {"missing_utm", "ctr_threshold"}

    def test_end_before_start_exits(self, db_path: str, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(
                [
                    *base_args(db_path, tmp_path),
                    "funnel", "--page", PAGE,
                    "--start", "2025-07-01T00:00:00Z",
                    "--end", "2025-06-01T00:00:00Z",
                ]
            )

        assert exc_info.value.code == 2

    def test_missing_tables_exit(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([*base_args(str(tmp_path / "empty.db"), tmp_path), "summary", "--page", PAGE])

        assert exc_info.value.code == 1
