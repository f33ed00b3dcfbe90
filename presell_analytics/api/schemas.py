"""
Request/response models for the analytics API.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from presell_analytics.components.funnel import FunnelSnapshot
from presell_analytics.components.summary import SummaryReport


class FunnelStageResponse(BaseModel):
    """One funnel stage."""

    name: str
    count: int
    conversion_rate: float
    drop_off_rate: float


class FunnelResponse(BaseModel):
    """Funnel snapshot response model."""

    page_id: str
    start: str
    end: str
    unique_visitors: int
    avg_dwell_seconds: float
    click_sessions: int
    scroll25_sessions: int
    scroll50_sessions: int
    scroll75_sessions: int
    scroll100_sessions: int
    ctr: float
    scroll_stages: list[FunnelStageResponse]
    click_stages: list[FunnelStageResponse]

    @classmethod
    def from_snapshot(cls, snapshot: FunnelSnapshot) -> FunnelResponse:
        return cls.model_validate(snapshot.to_dict())


class DailyStatResponse(BaseModel):
    date: str
    views: int
    clicks: int


class ElementStatResponse(BaseModel):
    element_id: str
    click_count: int


class BreakdownItemResponse(BaseModel):
    label: str
    views: int
    percentage: float


class CampaignStatResponse(BaseModel):
    source: str
    medium: str | None
    campaign: str | None
    views: int
    clicks: int
    ctr: float


class SummaryResponse(BaseModel):
    """Summary report response model."""

    page_id: str
    start: str
    end: str
    total_views: int
    total_clicks: int
    ctr_percentage: float
    missing_utm_views: int
    daily: list[DailyStatResponse]
    elements: list[ElementStatResponse]
    traffic_sources: list[BreakdownItemResponse]
    devices: list[BreakdownItemResponse]
    browsers: list[BreakdownItemResponse]
    campaigns: list[CampaignStatResponse]

    @classmethod
    def from_report(cls, report: SummaryReport) -> SummaryResponse:
        return cls.model_validate(report.to_dict())


class EventRequest(BaseModel):
    """Analytics event posted by a published page."""

    page_id: str = Field(..., description="Published page id")
    event_type: str = Field(..., description="view, click or scroll")
    session_id: str | None = Field(None, description="Visitor session id")
    element_id: str | None = Field(None, description="Clicked element (click only)")
    scroll_depth: int | None = Field(None, description="25, 50, 75 or 100 (scroll only)")
    referrer: str | None = Field(None, description="Referrer URL")
    user_agent: str | None = Field(None, description="Browser user agent")
    utm_source: str | None = Field(None, description="UTM source")
    utm_medium: str | None = Field(None, description="UTM medium")
    utm_campaign: str | None = Field(None, description="UTM campaign")
    utm_term: str | None = Field(None, description="UTM term")
    utm_content: str | None = Field(None, description="UTM content")
    landing_page_url: str | None = Field(None, description="First-touch landing URL")

    model_config = ConfigDict(extra="ignore")


class EventResponse(BaseModel):
    """Success response."""

    ok: bool = True
