import argparse
import json
import logging
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from presell_analytics.adapters.clock import SystemClock
from presell_analytics.adapters.sqlite_db import SQLiteEventStore, SQLiteSessionStore
from presell_analytics.components.alerts import default_alert_configs, evaluate_alerts
from presell_analytics.components.funnel import create_funnel_aggregator
from presell_analytics.components.summary import create_summary_aggregator
from presell_analytics.core.entities import DateRange
from presell_analytics.core.ports.stores import AnalyticsQueryError
from presell_analytics.rules.loader import load_rules
from presell_analytics.rules.models import Rules

logger = logging.getLogger("cli")

DB_PATH = "data/analytics.db"
RULES_PATH = "rules.yaml"
DEFAULT_RANGE_DAYS = 30


def parse_datetime(value: str) -> datetime:
    """argparse type: ISO-8601, trailing Z allowed, naive means UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid datetime: {value}") from e
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


def get_rules(path: Path) -> Rules:
    if not path.exists():
        logger.info("Rules file %s not found, using defaults.", path)
        return Rules()
    return load_rules(path)


def get_range(args: argparse.Namespace) -> DateRange:
    end = args.end or datetime.now(UTC)
    start = args.start or end - timedelta(days=DEFAULT_RANGE_DAYS)
    return DateRange(start=start, end=end)


def emit(data: dict[str, Any]) -> None:
    print(json.dumps(data, indent=2))


def handle_init_db(args: argparse.Namespace) -> None:
    Path(args.db).parent.mkdir(parents=True, exist_ok=True)
    SQLiteEventStore(args.db).ensure_schema()
    print(f"Initialized database at {args.db}")


def handle_funnel(args: argparse.Namespace, rules: Rules) -> None:
    aggregator = create_funnel_aggregator(
        SQLiteEventStore(args.db), SQLiteSessionStore(args.db), rules.funnel_config()
    )
    emit(aggregator.compute_funnel(args.page, get_range(args)).to_dict())


def handle_summary(args: argparse.Namespace, rules: Rules) -> None:
    aggregator = create_summary_aggregator(SQLiteEventStore(args.db), rules.summary_config())
    report = aggregator.compute_summary(args.page, get_range(args), site_host=args.site_host)
    emit(report.to_dict())


def handle_alerts(args: argparse.Namespace, rules: Rules) -> None:
    aggregator = create_summary_aggregator(SQLiteEventStore(args.db), rules.summary_config())
    report = aggregator.compute_summary(args.page, get_range(args))
    alerts = evaluate_alerts(
        default_alert_configs(),
        report,
        history=[],
        now=SystemClock().now_utc(),
        retrigger_window_seconds=rules.alerts.retrigger_window_seconds,
    )
    emit(
        {
            "page_id": args.page,
            "alerts": [
                {
                    "alert_type": a.alert_type,
                    "message": a.message,
                    "value": a.value,
                    "threshold": a.threshold,
                    "triggered_at": a.triggered_at.isoformat(),
                }
                for a in alerts
            ],
        }
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Presell analytics CLI")
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    parser.add_argument("--rules", default=RULES_PATH, help="Rules file path")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create analytics tables")

    for name, help_text in (
        ("funnel", "Print the session funnel for a page"),
        ("summary", "Print the analytics summary for a page"),
        ("alerts", "Evaluate the default alerts for a page"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--page", required=True, help="Page id")
        sub.add_argument("--start", type=parse_datetime, help="Start time (ISO format)")
        sub.add_argument("--end", type=parse_datetime, help="End time (ISO format)")
        if name == "summary":
            sub.add_argument("--site-host", help="Own host, counted as Internal traffic")

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        handle_init_db(args)
        return

    try:
        rules = get_rules(Path(args.rules))
    except ValueError as e:
        logger.error("Invalid rules file: %s", e)
        sys.exit(1)

    try:
        if args.command == "funnel":
            handle_funnel(args, rules)
        elif args.command == "summary":
            handle_summary(args, rules)
        elif args.command == "alerts":
            handle_alerts(args, rules)
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(2)
    except AnalyticsQueryError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
