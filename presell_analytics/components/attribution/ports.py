"""
Attribution component port definitions.
"""

from __future__ import annotations

from presell_analytics.core.ports.kv import KeyValueStorePort
from presell_analytics.core.ports.time import TimePort

__all__ = ["KeyValueStorePort", "TimePort"]
