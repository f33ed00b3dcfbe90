"""
Funnel component - View -> Scroll milestones and View -> Click.
"""

from .component import (
    FunnelAggregator,
    FunnelConfig,
    average_dwell_seconds,
    build_stages,
    create_funnel_aggregator,
    scroll_reach,
    stage_rates,
)
from .models import FunnelSnapshot, FunnelStage

__all__ = [
    "FunnelAggregator",
    "FunnelConfig",
    "FunnelSnapshot",
    "FunnelStage",
    "average_dwell_seconds",
    "build_stages",
    "create_funnel_aggregator",
    "scroll_reach",
    "stage_rates",
]
