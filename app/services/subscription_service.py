"""Service layer for subscription business logic.

This module applies the subscription rules on top of the repository:
- Lazy monthly reset: usage counters roll over on fetch, no background job
- Scenario: recomputed from the current record on every request
- Activation: after a successful payment the user's record is renewed for
  one calendar month with fresh counters

Architecture:
- Repository: Fetches raw data from database
- Service: Applies business rules, resolves scenarios, formats responses
- Route: Orchestrates service calls and returns HTTP responses
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.database.subscription_repo import SubscriptionRepository
from app.models.subscription import SubscriptionPlan, UserSubscription
from app.models.subscription_enums import SubscriptionStatus
from app.schemas.subscriptions import (
    Plan,
    PlanFeature,
    QuotaCheckRequest,
    QuotaCheckResponse,
    ScenarioInfo,
    SubscriptionMe,
    UsageInfo,
)
from app.services.plan_catalog import PREMIUM, PlanCatalog, PlanLimits
from app.services.quota_guard import UsageCounts, check_action
from app.services.scenario_resolver import Scenario, resolve_scenario
from app.services.usage_accountant import UsageAccountant
from app.utils.datetime import add_months, as_utc, utc_now

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Service for subscription business logic."""

    @staticmethod
    async def get_current_subscription(
        db: AsyncSession,
        user_id: uuid.UUID,
        now: Optional[datetime] = None,
    ) -> Optional[UserSubscription]:
        """
        Fetch the user's subscription and apply the lazy monthly reset.

        The reset is committed immediately so every later read in this
        request sees the new cycle.
        """
        subscription = await SubscriptionRepository.get_current_subscription(db, user_id)
        if subscription is None:
            return None

        now = now or utc_now()
        if as_utc(now) >= UsageAccountant.next_cycle_start(subscription.current_month_start):
            UsageAccountant.reset_if_new_cycle(subscription, now)
            await db.commit()
        return subscription

    @staticmethod
    async def get_scenario(
        db: AsyncSession,
        user_id: uuid.UUID,
        settings: Settings,
        now: Optional[datetime] = None,
    ) -> tuple[Optional[UserSubscription], Scenario]:
        """Return the (reset) subscription record and its resolved scenario."""
        now = now or utc_now()
        if not settings.ENABLE_SUBSCRIPTIONS:
            # Free access ignores whatever record the user has
            scenario = resolve_scenario(None, now, False, PlanCatalog(settings).free_access_plan())
            return None, scenario

        subscription = await SubscriptionService.get_current_subscription(db, user_id, now)
        return subscription, resolve_scenario(subscription, now, True)

    @staticmethod
    def to_scenario_info(scenario: Scenario) -> ScenarioInfo:
        quota_percentage = 0
        if scenario.max_posts:
            quota_percentage = min(100, round(scenario.posts_used * 100 / scenario.max_posts))
        return ScenarioInfo(
            kind=scenario.kind.value,
            quota_percentage=quota_percentage,
            **scenario.model_dump(exclude={"kind"}),
        )

    @staticmethod
    def build_subscription_me(
        subscription: Optional[UserSubscription],
        scenario: Scenario,
        settings: Settings,
    ) -> SubscriptionMe:
        usage = None
        if subscription is not None:
            usage = UsageInfo(
                posts_used=subscription.posts_used_this_month,
                images_used=subscription.images_used_this_month,
                videos_used=subscription.videos_used_this_month,
                current_month_start=as_utc(subscription.current_month_start),
                next_reset_at=UsageAccountant.next_cycle_start(subscription.current_month_start),
            )
        return SubscriptionMe(
            subscriptions_enabled=settings.ENABLE_SUBSCRIPTIONS,
            status=SubscriptionStatus(subscription.status).value if subscription is not None else None,
            start_date=as_utc(subscription.start_date) if subscription is not None else None,
            end_date=as_utc(subscription.end_date) if subscription is not None else None,
            scenario=SubscriptionService.to_scenario_info(scenario),
            usage=usage,
        )

    @staticmethod
    def check(scenario: Scenario, request: QuotaCheckRequest) -> QuotaCheckResponse:
        counts = UsageCounts.from_scenario(
            scenario,
            images_attached=request.images_attached,
            videos_attached=request.videos_attached,
        )
        decision = check_action(scenario, request.action, counts)
        return QuotaCheckResponse(
            allowed=decision.allowed,
            reason=decision.reason.value if decision.reason else None,
            message=decision.message,
        )

    @staticmethod
    def _plan_features(plan: PlanLimits) -> list[PlanFeature]:
        video_label = "video" if plan.max_videos_per_post == 1 else "videos"
        return [
            PlanFeature(label=f"{plan.max_posts_per_month} posts per month", available=True),
            PlanFeature(label=f"Up to {plan.max_images_per_post} images per post", available=True),
            PlanFeature(label=f"{plan.max_videos_per_post} {video_label} per post", available=plan.max_videos_per_post > 0),
            PlanFeature(label="Analytics dashboard", available=plan.has_analytics),
            PlanFeature(label="Verified badge", available=plan.has_verified_badge),
        ]

    @staticmethod
    def list_plans(settings: Settings) -> list[Plan]:
        """Plan catalog formatted for the pricing page, cheapest first."""
        return [
            Plan(
                name=plan.name,
                display_name=plan.display_name,
                price=plan.price,
                currency=settings.SUBSCRIPTION_CURRENCY,
                max_posts_per_month=plan.max_posts_per_month,
                max_images_per_post=plan.max_images_per_post,
                max_videos_per_post=plan.max_videos_per_post,
                has_analytics=plan.has_analytics,
                has_verified_badge=plan.has_verified_badge,
                grace_period_days=plan.grace_period_days,
                features=SubscriptionService._plan_features(plan),
                featured=plan.name == PREMIUM,
            )
            for plan in PlanCatalog(settings).list_plans()
        ]

    @staticmethod
    async def ensure_plan_row(db: AsyncSession, plan: PlanLimits) -> SubscriptionPlan:
        """Get or create the ``subscription_plans`` row matching a catalog plan."""
        row = await SubscriptionRepository.get_plan_by_name(db, plan.name)
        if row is not None:
            return row
        row = SubscriptionPlan(
            name=plan.name,
            display_name=plan.display_name,
            max_posts_per_month=plan.max_posts_per_month,
            max_images_per_post=plan.max_images_per_post,
            max_videos_per_post=plan.max_videos_per_post,
            has_analytics=plan.has_analytics,
            has_verified_badge=plan.has_verified_badge,
            price=plan.price,
            grace_period_days=plan.grace_period_days,
            is_active=True,
        )
        db.add(row)
        await db.flush()
        logger.info("Seeded subscription plan", extra={"plan": plan.name})
        return row

    @staticmethod
    async def activate_subscription(
        db: AsyncSession,
        user_id: uuid.UUID,
        plan_name: str,
        transaction_id: Optional[uuid.UUID],
        settings: Settings,
        now: Optional[datetime] = None,
    ) -> UserSubscription:
        """
        Renew (or create) the user's subscription after a successful payment.

        The billing window restarts at ``now`` and ends one calendar month
        later; usage counters start from zero. Commits on success.
        """
        now = as_utc(now or utc_now())
        plan = PlanCatalog(settings).get_plan(plan_name)
        plan_row = await SubscriptionService.ensure_plan_row(db, plan)

        subscription = await SubscriptionRepository.get_current_subscription(db, user_id)
        if subscription is None:
            subscription = UserSubscription(user_id=user_id)
            db.add(subscription)

        subscription.plan_id = plan_row.id
        subscription.plan = plan_row
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.start_date = now
        subscription.end_date = add_months(now, 1)
        subscription.posts_used_this_month = 0
        subscription.images_used_this_month = 0
        subscription.videos_used_this_month = 0
        subscription.current_month_start = now
        subscription.last_quota_reset = now
        subscription.payment_transaction_id = transaction_id

        await db.commit()
        logger.info(
            "Subscription activated",
            extra={"user_id": str(user_id), "plan": plan.name, "subscription_id": str(subscription.id)},
        )
        return subscription
