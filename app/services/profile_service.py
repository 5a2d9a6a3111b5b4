"""Profiles: created from token claims on first request, edited by their owner."""

import asyncio
import logging
import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.models.models import Profile
from app.schemas.users import ProfileResponse, ProfileUpdate
from app.services.quota_guard import validate_image
from app.services.storage import StorageService, content_type_for
from app.utils.datetime import as_utc
from app.utils.exceptions import ValidationException
from app.utils.phone import clean_phone_number, format_phone_for_whatsapp, phone_validation_error

logger = logging.getLogger(__name__)


def to_profile_response(profile: Profile) -> ProfileResponse:
    whatsapp = format_phone_for_whatsapp(profile.whatsapp_number or profile.phone_number)
    return ProfileResponse(
        id=str(profile.id),
        email=profile.email,
        full_name=profile.full_name,
        phone_number=profile.phone_number,
        whatsapp_number=profile.whatsapp_number,
        whatsapp_link=f"https://wa.me/{whatsapp}" if whatsapp else None,
        avatar_url=profile.avatar_url,
        city=profile.city,
        created_at=as_utc(profile.created_at) if profile.created_at else None,
    )


class ProfileService:
    """Service for profile reads and writes."""

    @staticmethod
    async def get_or_create(db: AsyncSession, user_id: uuid.UUID, claims: dict[str, Any]) -> Profile:
        result = await db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile is not None:
            return profile

        metadata = claims.get("user_metadata") or {}
        profile = Profile(
            id=user_id,
            email=claims.get("email"),
            full_name=metadata.get("full_name"),
            phone_number=claims.get("phone") or metadata.get("phone_number"),
        )
        db.add(profile)
        await db.commit()
        logger.info("Profile created", extra={"user_id": str(user_id)})
        return profile

    @staticmethod
    async def update_profile(db: AsyncSession, profile: Profile, payload: ProfileUpdate) -> Profile:
        changes = payload.model_dump(exclude_unset=True)
        for field in ("phone_number", "whatsapp_number"):
            value = changes.get(field)
            if value:
                error = phone_validation_error(value)
                if error:
                    raise ValidationException(error, details={"field": field})
                changes[field] = clean_phone_number(value)

        updated = False
        for key, value in changes.items():
            if getattr(profile, key) != value:
                setattr(profile, key, value)
                updated = True
        if updated:
            await db.commit()
        return profile

    @staticmethod
    async def upload_avatar(
        db: AsyncSession,
        profile: Profile,
        storage: StorageService,
        settings: Settings,
        filename: str,
        content_type: Optional[str],
        data: bytes,
    ) -> Profile:
        """Replace the profile picture; the previous object is removed after the row is saved."""
        if content_type and not content_type.startswith("image/"):
            raise ValidationException("Profile pictures must be images")
        validate_image(len(data), settings.MAX_IMAGE_SIZE_MB).raise_for_denial()

        bucket = settings.BUCKET_PROFILE_PICTURES
        path = StorageService.avatar_path(profile.id, filename)
        url = await asyncio.to_thread(
            storage.upload_object, bucket, path, content_type or content_type_for(filename, "image"), data
        )

        previous = profile.avatar_url
        profile.avatar_url = url
        await db.commit()

        if previous:
            try:
                await asyncio.to_thread(storage.delete_by_url, bucket, previous)
            except Exception:
                logger.exception("Failed to delete previous avatar", extra={"user_id": str(profile.id)})
        return profile
