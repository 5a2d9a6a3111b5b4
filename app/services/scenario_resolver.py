"""Scenario resolver: maps a subscription record and the current time to an access scenario.

Scenarios are recomputed on every request and never persisted. Resolution is
pure and total; the evaluation order is:

1. subscriptions disabled  -> free access for everyone
2. no subscription record  -> nothing allowed
3. active, end_date > now  -> plan limits apply
4. expired within grace    -> dashboard and editing, no new posts
5. anything else           -> locked

The grace boundary is inclusive: ``days_expired == grace_period_days`` is
still the grace period.
"""

import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from app.models.subscription_enums import SubscriptionStatus
from app.services.plan_catalog import PlanCatalog, PlanLimits
from app.utils.datetime import as_utc, days_since


class ScenarioKind(str, enum.Enum):
    SUBSCRIPTIONS_DISABLED = "subscriptions_disabled"
    NO_SUBSCRIPTION = "no_subscription"
    ACTIVE = "active"
    GRACE_PERIOD = "grace_period"
    LOCKED = "locked"


class Scenario(BaseModel):
    """Resolved access state consumed by the quota guard and the API."""

    model_config = ConfigDict(frozen=True)

    kind: ScenarioKind
    plan_name: Optional[str] = None
    can_post: bool = False
    can_edit_listings: bool = False
    has_dashboard_access: bool = False
    has_analytics_access: bool = False
    listings_should_be_live: bool = False
    posts_used: int = 0
    max_posts: int = 0
    posts_remaining: int = 0
    image_limit_per_post: int = 0
    video_limit_per_post: int = 0
    days_expired: int = 0
    grace_days_remaining: int = 0
    warning_message: str = ""


def _free_access_scenario(plan: PlanLimits) -> Scenario:
    return Scenario(
        kind=ScenarioKind.SUBSCRIPTIONS_DISABLED,
        plan_name=plan.name,
        can_post=True,
        can_edit_listings=True,
        has_dashboard_access=True,
        has_analytics_access=plan.has_analytics,
        listings_should_be_live=True,
        posts_used=0,
        max_posts=plan.max_posts_per_month,
        posts_remaining=plan.max_posts_per_month,
        image_limit_per_post=plan.max_images_per_post,
        video_limit_per_post=plan.max_videos_per_post,
        warning_message="",
    )


def _no_subscription_scenario() -> Scenario:
    return Scenario(
        kind=ScenarioKind.NO_SUBSCRIPTION,
        warning_message="Subscribe to start creating posts",
    )


def _locked_message(status: SubscriptionStatus, days_expired: int) -> str:
    if status == SubscriptionStatus.CANCELLED:
        return "Your subscription was cancelled. Subscribe again to restore access."
    if status == SubscriptionStatus.PENDING:
        return "Your subscription is awaiting payment confirmation."
    return f"Expired {days_expired} days ago. Renew to restore your listings."


def resolve_scenario(
    subscription: Optional[Any],
    now: datetime,
    subscriptions_enabled: bool,
    free_access_plan: Optional[PlanLimits] = None,
) -> Scenario:
    """Resolve the access scenario for ``subscription`` at ``now``.

    ``subscription`` is a ``UserSubscription`` (or any object with the same
    attributes) whose ``plan`` is a ``SubscriptionPlan`` row or ``PlanLimits``.
    """
    if not subscriptions_enabled:
        return _free_access_scenario(free_access_plan or PlanCatalog().free_access_plan())

    if subscription is None:
        return _no_subscription_scenario()

    plan = PlanLimits.model_validate(subscription.plan)
    status = SubscriptionStatus(subscription.status)
    posts_used = subscription.posts_used_this_month or 0
    max_posts = plan.max_posts_per_month

    if status == SubscriptionStatus.ACTIVE and as_utc(subscription.end_date) > as_utc(now):
        remaining = max(0, max_posts - posts_used)
        can_post = posts_used < max_posts
        if can_post:
            message = f"Active! {remaining} posts remaining."
        else:
            message = f"Post quota full ({posts_used}/{max_posts}). Renew or upgrade to get more."
        return Scenario(
            kind=ScenarioKind.ACTIVE,
            plan_name=plan.name,
            can_post=can_post,
            can_edit_listings=True,
            has_dashboard_access=True,
            has_analytics_access=plan.has_analytics,
            listings_should_be_live=True,
            posts_used=posts_used,
            max_posts=max_posts,
            posts_remaining=remaining,
            image_limit_per_post=plan.max_images_per_post,
            video_limit_per_post=plan.max_videos_per_post,
            warning_message=message,
        )

    # An "active" row whose end_date has passed is stale and is judged like an expired one
    days_expired = max(0, days_since(subscription.end_date, now))
    if status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED) and days_expired <= plan.grace_period_days:
        grace_left = plan.grace_period_days - days_expired
        return Scenario(
            kind=ScenarioKind.GRACE_PERIOD,
            plan_name=plan.name,
            can_post=False,
            can_edit_listings=True,
            has_dashboard_access=True,
            has_analytics_access=plan.has_analytics,
            listings_should_be_live=True,
            posts_used=posts_used,
            max_posts=max_posts,
            posts_remaining=0,
            image_limit_per_post=plan.max_images_per_post,
            video_limit_per_post=plan.max_videos_per_post,
            days_expired=days_expired,
            grace_days_remaining=grace_left,
            warning_message=f"Grace period: {grace_left} days left. Renew to secure access!",
        )

    return Scenario(
        kind=ScenarioKind.LOCKED,
        plan_name=plan.name,
        posts_used=posts_used,
        max_posts=max_posts,
        days_expired=days_expired if status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED) else 0,
        warning_message=_locked_message(status, days_expired),
    )
