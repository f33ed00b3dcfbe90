"""
Core ports (interfaces) for presell analytics.

Protocol-based definitions for external collaborators.
"""

from presell_analytics.core.ports.kv import KeyValueStorePort
from presell_analytics.core.ports.stores import (
    AnalyticsQueryError,
    EventStorePort,
    QueryError,
    SessionStorePort,
)
from presell_analytics.core.ports.time import TimePort

__all__ = [
    "AnalyticsQueryError",
    "EventStorePort",
    "KeyValueStorePort",
    "QueryError",
    "SessionStorePort",
    "TimePort",
]
