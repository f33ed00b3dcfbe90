"""
Tracking component - fire-and-forget event recording and ingestion.
"""

from ._ingest import EventIngestor, create_event_ingestor, validate_event
from .component import PageTracker, create_page_tracker
from .models import PageLoadResult, TrackingError, TrackResult

__all__ = [
    "EventIngestor",
    "PageLoadResult",
    "PageTracker",
    "TrackResult",
    "TrackingError",
    "create_event_ingestor",
    "create_page_tracker",
    "validate_event",
]
