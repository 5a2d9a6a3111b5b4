"""Repository layer for support operations - abstracts data access."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import SupportMessage
from app.queries.support_queries import SupportQueries


class SupportRepository:
    """Repository layer for support data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        full_name: str,
        subject: Optional[str],
        message: str,
        user_id: Optional[UUID],
    ) -> SupportMessage:
        return await SupportQueries.create_support_message(
            db=self.db,
            full_name=full_name,
            subject=subject,
            message=message,
            user_id=user_id,
        )

    async def get_by_user_id(self, user_id: UUID, limit: int = 100) -> list[SupportMessage]:
        """Get all support messages for a user."""
        return await SupportQueries.get_support_messages_by_user_id(
            db=self.db, user_id=user_id, limit=limit
        )
