import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from presell_analytics.adapters.clock import SystemClock
from presell_analytics.adapters.sqlite_db import SQLiteEventStore, SQLiteSessionStore
from presell_analytics.components.funnel import FunnelAggregator, create_funnel_aggregator
from presell_analytics.components.summary import SummaryAggregator, create_summary_aggregator
from presell_analytics.components.tracking import EventIngestor, create_event_ingestor
from presell_analytics.core.ports.stores import EventStorePort, SessionStorePort
from presell_analytics.core.ports.time import TimePort
from presell_analytics.rules.loader import load_rules
from presell_analytics.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("PRESELL_DATA_DIR", "./data"))
        self.db_path = os.environ.get("PRESELL_DB_PATH", str(self.data_dir / "analytics.db"))
        self.rules_path = Path(
            os.environ.get("PRESELL_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Stores ---
def get_event_store(settings: Settings = Depends(get_settings)) -> EventStorePort:
    return SQLiteEventStore(settings.db_path)


def get_session_store(settings: Settings = Depends(get_settings)) -> SessionStorePort:
    return SQLiteSessionStore(settings.db_path)


def get_clock() -> TimePort:
    return SystemClock()


# --- Component Services ---
def get_funnel_aggregator(
    events: EventStorePort = Depends(get_event_store),
    sessions: SessionStorePort = Depends(get_session_store),
    rules: Rules = Depends(get_rules),
) -> FunnelAggregator:
    """Get funnel component service."""
    return create_funnel_aggregator(events, sessions, rules.funnel_config())


def get_summary_aggregator(
    events: EventStorePort = Depends(get_event_store),
    rules: Rules = Depends(get_rules),
) -> SummaryAggregator:
    """Get summary component service."""
    return create_summary_aggregator(events, rules.summary_config())


def get_event_ingestor(
    events: EventStorePort = Depends(get_event_store),
    sessions: SessionStorePort = Depends(get_session_store),
    clock: TimePort = Depends(get_clock),
) -> EventIngestor:
    """Get event ingestion service."""
    return create_event_ingestor(events, sessions, clock)
