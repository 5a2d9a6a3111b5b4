"""Plan catalog: the subscription tiers and their quota limits.

The catalog is the single source of plan limits. ``subscription_plans`` rows
are seeded from it, and the synthetic free-access plan used while paid
subscriptions are switched off is built here from settings.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import Settings, settings as default_settings
from app.utils.exceptions import NotFoundException

STANDARD = "standard"
PREMIUM = "premium"
FREE_ACCESS = "free_access"


class PlanLimits(BaseModel):
    """Immutable view of a plan, built from the catalog or a ``SubscriptionPlan`` row."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    name: str
    display_name: str = ""
    max_posts_per_month: int = Field(..., gt=0)
    max_images_per_post: int = Field(..., ge=0)
    max_videos_per_post: int = Field(..., ge=0)
    has_analytics: bool = False
    has_verified_badge: bool = False
    price: Decimal = Decimal("0")
    grace_period_days: int = Field(default=7, ge=0)


class PlanCatalog:
    """Read-only lookup of plans by name."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or default_settings
        s = self._settings
        self._plans: dict[str, PlanLimits] = {
            STANDARD: PlanLimits(
                name=STANDARD,
                display_name="Standard",
                max_posts_per_month=s.STANDARD_MAX_POSTS_PER_MONTH,
                max_images_per_post=s.STANDARD_MAX_IMAGES_PER_POST,
                max_videos_per_post=s.STANDARD_MAX_VIDEOS_PER_POST,
                has_analytics=False,
                has_verified_badge=False,
                price=Decimal(s.STANDARD_PRICE),
                grace_period_days=s.GRACE_PERIOD_DAYS,
            ),
            PREMIUM: PlanLimits(
                name=PREMIUM,
                display_name="Premium",
                max_posts_per_month=s.PREMIUM_MAX_POSTS_PER_MONTH,
                max_images_per_post=s.PREMIUM_MAX_IMAGES_PER_POST,
                max_videos_per_post=s.PREMIUM_MAX_VIDEOS_PER_POST,
                has_analytics=True,
                has_verified_badge=True,
                price=Decimal(s.PREMIUM_PRICE),
                grace_period_days=s.GRACE_PERIOD_DAYS,
            ),
        }

    def get_plan(self, name: str) -> PlanLimits:
        plan = self._plans.get(name.lower()) if name else None
        if plan is None:
            raise NotFoundException(f"Unknown subscription plan '{name}'")
        return plan

    def list_plans(self) -> list[PlanLimits]:
        return sorted(self._plans.values(), key=lambda plan: plan.price)

    def free_access_plan(self) -> PlanLimits:
        """Plan substituted for everyone while paid subscriptions are disabled."""
        s = self._settings
        return PlanLimits(
            name=FREE_ACCESS,
            display_name="Free Access (Beta)",
            max_posts_per_month=s.FREE_ACCESS_MAX_POSTS_PER_MONTH,
            max_images_per_post=s.FREE_ACCESS_MAX_IMAGES_PER_POST,
            max_videos_per_post=s.FREE_ACCESS_MAX_VIDEOS_PER_POST,
            has_analytics=s.FREE_ACCESS_HAS_ANALYTICS,
            has_verified_badge=False,
            price=Decimal("0"),
            grace_period_days=0,
        )
