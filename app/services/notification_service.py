"""Notification service for user notifications."""

import json
import uuid
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Notification
from app.schemas.notifications import NotificationResponse
from app.utils.datetime import as_utc
from app.utils.exceptions import NotFoundException


class NotificationService:
    """Service for managing user notifications."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: uuid.UUID,
        notification_type: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
        commit: bool = True,
    ) -> Notification:
        """Create a notification for a user.

        With ``commit=False`` the row joins the caller's transaction.
        """
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            # Serialize data to TEXT for DB
            data=json.dumps(data) if data is not None else None,
        )
        db.add(notification)
        if commit:
            await db.commit()
        return notification

    @staticmethod
    async def list_notifications(
        db: AsyncSession,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = await db.execute(stmt.order_by(Notification.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    @staticmethod
    async def unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return int(result.scalar_one() or 0)

    @staticmethod
    async def mark_read(db: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        result = await db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundException("Notification not found")
        notification.is_read = True
        await db.commit()
        return notification

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount or 0

    @staticmethod
    def to_response(notification: Notification) -> NotificationResponse:
        return NotificationResponse(
            id=str(notification.id),
            type=notification.type,
            title=notification.title,
            message=notification.message,
            is_read=notification.is_read,
            data=json.loads(notification.data) if notification.data else None,
            created_at=as_utc(notification.created_at),
        )

    @staticmethod
    async def notify_listing_created(
        db: AsyncSession,
        user_id: uuid.UUID,
        title: str,
        domain: str,
        listing_id: uuid.UUID,
    ) -> Notification:
        """Queue a "listing submitted" notification inside the listing transaction."""
        return await NotificationService.create_notification(
            db=db,
            user_id=user_id,
            notification_type="listing_created",
            title="Listing submitted",
            message=f"'{title}' was submitted and is awaiting review.",
            data={"domain": domain, "listing_id": str(listing_id)},
            commit=False,
        )

    @staticmethod
    async def notify_subscription_activated(
        db: AsyncSession,
        user_id: uuid.UUID,
        plan_display_name: str,
        max_posts: int,
    ) -> Notification:
        """Queued with the subscription activation and committed by it."""
        return await NotificationService.create_notification(
            db=db,
            user_id=user_id,
            notification_type="subscription_activated",
            title="Subscription active",
            message=f"Your {plan_display_name} plan is active. You can publish {max_posts} listings this month.",
            data={"plan": plan_display_name},
            commit=False,
        )
