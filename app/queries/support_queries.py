"""Query layer for support operations - contains raw database queries."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import SupportMessage


class SupportQueries:
    """Query layer for support_messages table operations."""

    @staticmethod
    async def create_support_message(
        db: AsyncSession,
        full_name: str,
        subject: Optional[str],
        message: str,
        user_id: Optional[UUID],
    ) -> SupportMessage:
        """Create a new support message in the database."""
        support_message = SupportMessage(
            full_name=full_name,
            subject=subject,
            message=message,
            user_id=user_id,
            status="open",
        )
        db.add(support_message)
        await db.flush()
        await db.commit()
        return support_message

    @staticmethod
    async def get_support_messages_by_user_id(
        db: AsyncSession, user_id: UUID, limit: int = 100
    ) -> list[SupportMessage]:
        """Get all support messages sent by a specific user."""
        stmt = (
            select(SupportMessage)
            .where(SupportMessage.user_id == user_id)
            .order_by(SupportMessage.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
