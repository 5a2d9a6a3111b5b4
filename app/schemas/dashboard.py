"""Owner dashboard schemas."""

from pydantic import BaseModel, Field


class DomainTotals(BaseModel):
    domain: str
    total: int = Field(..., ge=0)
    approved: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)
    available: int = Field(..., ge=0)
    views: int = Field(default=0, ge=0)
    whatsapp_clicks: int = Field(default=0, ge=0)


class DashboardOverviewResponse(BaseModel):
    total_listings: int
    available_listings: int
    pending_listings: int
    posts_remaining: int
    warning_message: str
    domains: list[DomainTotals]


class TopListing(BaseModel):
    domain: str
    id: str
    title: str
    views: int
    whatsapp_clicks: int


class AnalyticsResponse(BaseModel):
    total_views: int
    total_whatsapp_clicks: int
    click_through_rate: float = Field(..., description="whatsapp clicks / views, 0 when no views")
    domains: list[DomainTotals]
    top_listings: list[TopListing]
