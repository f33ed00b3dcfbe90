"""
Analytics API.

Funnel and summary reports per page, plus event ingestion for published
pages. Query failures are reported as 503, never as an empty report.
"""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status

from presell_analytics.api.deps import (
    get_event_ingestor,
    get_funnel_aggregator,
    get_summary_aggregator,
)
from presell_analytics.api.schemas import (
    EventRequest,
    EventResponse,
    FunnelResponse,
    SummaryResponse,
)
from presell_analytics.components.funnel import FunnelAggregator
from presell_analytics.components.summary import SummaryAggregator
from presell_analytics.components.tracking import EventIngestor
from presell_analytics.core.entities import DateRange
from presell_analytics.core.ports.stores import AnalyticsQueryError

router = APIRouter()

DEFAULT_RANGE_DAYS = 30


# --- Helper Functions ---


def parse_datetime(dt_str: str) -> datetime:
    """Parse an ISO-8601 string; a trailing Z and naive values mean UTC."""
    try:
        if dt_str.endswith("Z"):
            dt_str = dt_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(dt_str)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_datetime", "message": f"Invalid datetime format: {dt_str}"},
        ) from e


def resolve_range(start: str | None, end: str | None) -> DateRange:
    """Build the query window, defaulting to the last 30 days."""
    end_dt = parse_datetime(end) if end else datetime.now(UTC)
    start_dt = parse_datetime(start) if start else end_dt - timedelta(days=DEFAULT_RANGE_DAYS)
    try:
        return DateRange(start=start_dt, end=end_dt)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_range", "message": str(e)},
        ) from e


def query_failed(e: AnalyticsQueryError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "code": "query_failed",
            "message": f"Could not load {e.operation} data",
            "page_id": e.page_id,
        },
    )


# --- Routes ---


@router.get("/{page_id}/funnel", response_model=FunnelResponse)
def get_funnel(
    page_id: str,
    start: str | None = Query(None, description="Start time (ISO format)"),
    end: str | None = Query(None, description="End time (ISO format)"),
    aggregator: FunnelAggregator = Depends(get_funnel_aggregator),
) -> FunnelResponse:
    """Session funnel for a page over a date range."""
    date_range = resolve_range(start, end)
    try:
        snapshot = aggregator.compute_funnel(page_id, date_range)
    except AnalyticsQueryError as e:
        raise query_failed(e) from e
    return FunnelResponse.from_snapshot(snapshot)


@router.get("/{page_id}/summary", response_model=SummaryResponse)
def get_summary(
    page_id: str,
    start: str | None = Query(None, description="Start time (ISO format)"),
    end: str | None = Query(None, description="End time (ISO format)"),
    site_host: str | None = Query(None, description="Own host, counted as Internal traffic"),
    aggregator: SummaryAggregator = Depends(get_summary_aggregator),
) -> SummaryResponse:
    """Totals and breakdowns for a page over a date range."""
    date_range = resolve_range(start, end)
    try:
        report = aggregator.compute_summary(page_id, date_range, site_host=site_host)
    except AnalyticsQueryError as e:
        raise query_failed(e) from e
    return SummaryResponse.from_report(report)


@router.post(
    "/events",
    response_model=EventResponse,
    responses={
        400: {"description": "Validation failed"},
        503: {"description": "Event could not be stored"},
    },
)
def ingest_event(
    body: EventRequest,
    ingestor: EventIngestor = Depends(get_event_ingestor),
) -> EventResponse:
    """Record a view, click or scroll event."""
    data = {k: v for k, v in body.model_dump().items() if v is not None}
    event, errors = ingestor.ingest(data)

    if errors:
        write_failed = any(e.code == "write_failed" for e in errors)
        raise HTTPException(
            status_code=(
                status.HTTP_503_SERVICE_UNAVAILABLE
                if write_failed
                else status.HTTP_400_BAD_REQUEST
            ),
            detail={
                "ok": False,
                "errors": [
                    {"code": e.code, "message": e.message, "field": e.field_name}
                    for e in errors
                ],
            },
        )

    return EventResponse()
