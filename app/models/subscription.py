"""Plan and subscription models.

SubscriptionPlan rows are seeded from the plan catalog
(``app.services.plan_catalog``). UserSubscription holds the billing window
and the monthly usage counters the quota engine reads and updates.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TIMESTAMP

from app.models.base import Base, enum_values
from app.models.mixins import TimestampMixin, UUIDMixin
from app.models.subscription_enums import SubscriptionStatus

if TYPE_CHECKING:
    from app.models.models import Profile


class SubscriptionPlan(UUIDMixin, TimestampMixin, Base):
    """Subscription tier (standard, premium) with its quota limits."""

    __tablename__ = "subscription_plans"
    __table_args__ = (
        CheckConstraint("max_posts_per_month > 0", name="ck_plan_max_posts_positive"),
        CheckConstraint("max_images_per_post >= 0", name="ck_plan_max_images"),
        CheckConstraint("max_videos_per_post >= 0", name="ck_plan_max_videos"),
    )

    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    max_posts_per_month: Mapped[int] = mapped_column(Integer, nullable=False)
    max_images_per_post: Mapped[int] = mapped_column(Integer, nullable=False)
    max_videos_per_post: Mapped[int] = mapped_column(Integer, nullable=False)
    has_analytics: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    has_verified_badge: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    grace_period_days: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("7"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))

    subscriptions: Mapped[list["UserSubscription"]] = relationship("UserSubscription", back_populates="plan")


class UserSubscription(UUIDMixin, TimestampMixin, Base):
    """A user's subscription to a plan with its monthly usage counters."""

    __tablename__ = "user_subscriptions"
    __table_args__ = (
        Index("ix_user_subscriptions_user", "user_id"),
        CheckConstraint("posts_used_this_month >= 0", name="ck_sub_posts_used"),
        CheckConstraint("images_used_this_month >= 0", name="ck_sub_images_used"),
        CheckConstraint("videos_used_this_month >= 0", name="ck_sub_videos_used"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("subscription_plans.id"), nullable=False
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, name="subscription_status", native_enum=False, values_callable=enum_values), nullable=False
    )
    start_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    posts_used_this_month: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    images_used_this_month: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    videos_used_this_month: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    current_month_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    last_quota_reset: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    payment_transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("payment_transactions.id", ondelete="SET NULL")
    )

    # Always needed by the scenario resolver, so load it with the row
    plan: Mapped[SubscriptionPlan] = relationship("SubscriptionPlan", back_populates="subscriptions", lazy="joined")
    user: Mapped["Profile"] = relationship("Profile", back_populates="subscriptions")
