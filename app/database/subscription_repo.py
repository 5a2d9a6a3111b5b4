"""Repository layer for subscription-related database operations.

This module contains ONLY database access logic - no business rules.
Repository functions fetch data from the database and return raw models.

Key Concepts:
- SubscriptionPlan: A tier (standard, premium) with its quota limits
- UserSubscription: A user's subscription with billing window and usage counters
- PaymentTransaction: One mobile-money payment attempt
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import PaymentTransaction
from app.models.subscription import SubscriptionPlan, UserSubscription


class SubscriptionRepository:
    """Repository for subscription database operations."""

    @staticmethod
    async def get_current_subscription(
        db: AsyncSession, user_id: uuid.UUID
    ) -> Optional[UserSubscription]:
        """
        Fetch the user's current subscription (the most recent record).

        Args:
            db: Database session
            user_id: ID of the owning user

        Returns:
            UserSubscription with its plan loaded, or None
        """
        result = await db.execute(
            select(UserSubscription)
            .where(UserSubscription.user_id == user_id)
            .order_by(UserSubscription.end_date.desc(), UserSubscription.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.unique().scalar_one_or_none()

    @staticmethod
    async def get_plan_by_name(db: AsyncSession, plan_name: str) -> Optional[SubscriptionPlan]:
        """
        Fetch a plan by its name (e.g., "standard", "premium").

        Args:
            db: Database session
            plan_name: Name of the plan to fetch

        Returns:
            SubscriptionPlan if found, None otherwise
        """
        result = await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.name == plan_name))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_payment_transactions(
        db: AsyncSession, user_id: uuid.UUID, limit: int = 50
    ) -> list[PaymentTransaction]:
        result = await db.execute(
            select(PaymentTransaction)
            .where(PaymentTransaction.user_id == user_id)
            .order_by(PaymentTransaction.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
