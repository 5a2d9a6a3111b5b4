"""Usage accountant: monthly usage counters of a subscription.

Counters roll over lazily: ``reset_if_new_cycle`` runs whenever a
subscription is fetched, so a user who is away across a cycle boundary sees
their counts reset on the next fetch rather than at the boundary itself.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.subscription import UserSubscription
from app.utils.datetime import add_months, as_utc

_logger = logging.getLogger(__name__)


class UsageAccountant:
    """Increments and resets quota counters."""

    @staticmethod
    def next_cycle_start(current_month_start: datetime) -> datetime:
        """Calendar-month rollover point (not a fixed 30-day window)."""
        return add_months(as_utc(current_month_start), 1)

    @staticmethod
    def reset_if_new_cycle(subscription: UserSubscription, now: datetime) -> UserSubscription:
        """Zero the counters when ``now`` has reached the next cycle start.

        Mutates and returns ``subscription``. Calling it again within the same
        cycle is a no-op.
        """
        now = as_utc(now)
        if now < UsageAccountant.next_cycle_start(subscription.current_month_start):
            return subscription

        _logger.info(
            "Resetting monthly usage",
            extra={
                "subscription_id": str(subscription.id),
                "posts_used": subscription.posts_used_this_month,
                "previous_cycle_start": as_utc(subscription.current_month_start).isoformat(),
            },
        )
        subscription.posts_used_this_month = 0
        subscription.images_used_this_month = 0
        subscription.videos_used_this_month = 0
        subscription.current_month_start = now
        subscription.last_quota_reset = now
        return subscription

    @staticmethod
    async def record_post_created(
        db: AsyncSession,
        subscription_id: uuid.UUID,
        images: int = 0,
        videos: int = 0,
    ) -> None:
        """Count one created listing (and the media persisted with it).

        Runs as a server-side increment inside the caller's transaction and
        must only be called after the listing row has been flushed.
        """
        await db.execute(
            update(UserSubscription)
            .where(UserSubscription.id == subscription_id)
            .values(
                posts_used_this_month=UserSubscription.posts_used_this_month + 1,
                images_used_this_month=UserSubscription.images_used_this_month + images,
                videos_used_this_month=UserSubscription.videos_used_this_month + videos,
            )
        )

    @staticmethod
    async def record_media_added(
        db: AsyncSession,
        subscription_id: uuid.UUID,
        images: int = 0,
        videos: int = 0,
    ) -> None:
        """Count media attached to an existing listing; the post counter is untouched."""
        if not images and not videos:
            return
        await db.execute(
            update(UserSubscription)
            .where(UserSubscription.id == subscription_id)
            .values(
                images_used_this_month=UserSubscription.images_used_this_month + images,
                videos_used_this_month=UserSubscription.videos_used_this_month + videos,
            )
        )
