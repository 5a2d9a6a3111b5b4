"""Subscription, plan and quota schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.services.quota_guard import Action


class PlanFeature(BaseModel):
    """Plan feature description."""

    label: str
    available: bool


class Plan(BaseModel):
    """Subscription plan details."""

    name: str
    display_name: str
    price: Decimal = Field(..., ge=0)
    currency: str
    max_posts_per_month: int
    max_images_per_post: int
    max_videos_per_post: int
    has_analytics: bool
    has_verified_badge: bool
    grace_period_days: int
    features: list[PlanFeature]
    featured: bool = False


class UsageInfo(BaseModel):
    """Monthly usage counters."""

    posts_used: int = Field(..., ge=0)
    images_used: int = Field(default=0, ge=0)
    videos_used: int = Field(default=0, ge=0)
    current_month_start: Optional[datetime] = None
    next_reset_at: Optional[datetime] = None


class ScenarioInfo(BaseModel):
    """Resolved access scenario."""

    kind: str
    plan_name: Optional[str] = None
    can_post: bool
    can_edit_listings: bool
    has_dashboard_access: bool
    has_analytics_access: bool
    listings_should_be_live: bool
    posts_used: int
    max_posts: int
    posts_remaining: int
    image_limit_per_post: int
    video_limit_per_post: int
    days_expired: int
    grace_days_remaining: int
    warning_message: str
    quota_percentage: int = Field(default=0, ge=0)


class SubscriptionMe(BaseModel):
    """Current user's subscription information."""

    subscriptions_enabled: bool
    status: Optional[str] = Field(None, description="active, expired, cancelled, pending or null")
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    scenario: ScenarioInfo
    usage: Optional[UsageInfo] = None


class QuotaCheckRequest(BaseModel):
    """Ask the quota guard about an action before doing any work."""

    action: Action
    images_attached: int = Field(default=0, ge=0)
    videos_attached: int = Field(default=0, ge=0)


class QuotaCheckResponse(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    message: str = ""
