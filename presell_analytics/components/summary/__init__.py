"""
Summary component - totals, daily series and breakdowns.
"""

from .component import (
    DIRECT,
    INTERNAL,
    OTHER,
    SummaryAggregator,
    SummaryConfig,
    breakdown,
    campaign_stats,
    classify_traffic_source,
    create_summary_aggregator,
    daily_stats,
    element_stats,
    percentage,
)
from .models import (
    BreakdownItem,
    CampaignStat,
    DailyStat,
    ElementStat,
    SummaryReport,
)

__all__ = [
    "DIRECT",
    "INTERNAL",
    "OTHER",
    "BreakdownItem",
    "CampaignStat",
    "DailyStat",
    "ElementStat",
    "SummaryAggregator",
    "SummaryConfig",
    "SummaryReport",
    "breakdown",
    "campaign_stats",
    "classify_traffic_source",
    "create_summary_aggregator",
    "daily_stats",
    "element_stats",
    "percentage",
]
