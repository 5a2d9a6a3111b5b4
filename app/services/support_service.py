"""Service layer for support operations - contains business logic."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import SupportMessage
from app.repositories.support_repository import SupportRepository
from app.schemas.support import SupportResponse
from app.utils.datetime import as_utc
from app.utils.exceptions import ValidationException

logger = logging.getLogger(__name__)


class SupportService:
    """Service layer for support business logic."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.repository = SupportRepository(db)

    async def create_support_message(
        self,
        full_name: str,
        subject: Optional[str],
        message: str,
        user_id: Optional[UUID],
    ) -> SupportMessage:
        """Create a new support message with trimmed, non-empty fields."""
        full_name = (full_name or "").strip()
        message = (message or "").strip()
        if not full_name:
            raise ValidationException("Full name is required and cannot be empty")
        if not message:
            raise ValidationException("Message is required and cannot be empty")
        if subject:
            subject = subject.strip() or None

        support_message = await self.repository.create(
            full_name=full_name,
            subject=subject,
            message=message,
            user_id=user_id,
        )
        logger.info("Support message received", extra={"support_message_id": str(support_message.id)})
        return support_message

    async def get_user_support_messages(self, user_id: UUID, limit: int = 100) -> list[SupportMessage]:
        return await self.repository.get_by_user_id(user_id, limit)

    @staticmethod
    def to_response(support_message: SupportMessage) -> SupportResponse:
        return SupportResponse(
            id=str(support_message.id),
            full_name=support_message.full_name,
            subject=support_message.subject,
            message=support_message.message,
            status=support_message.status,
            created_at=as_utc(support_message.created_at),
        )
