"""Repository layer for listing database operations.

All functions take a ``ListingDomain`` so the same queries serve rental
properties and every marketplace category table.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.listings import ListingDomain, ListingStatus, MediaType


class ListingRepository:
    """Repository for listing and listing-media database operations."""

    @staticmethod
    async def get_listing(db: AsyncSession, domain: ListingDomain, listing_id: uuid.UUID) -> Optional[Any]:
        """Get one listing with its media (ordered by display_order)."""
        result = await db.execute(select(domain.model).where(domain.model.id == listing_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_owner_listings(db: AsyncSession, domain: ListingDomain, owner_id: uuid.UUID) -> list[Any]:
        """Get all listings of an owner in one domain, most recent first."""
        result = await db.execute(
            select(domain.model)
            .where(domain.owner_column() == owner_id)
            .order_by(domain.model.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_public_listings(
        db: AsyncSession,
        domain: ListingDomain,
        city: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Any]:
        """Approved and available listings, featured first."""
        stmt = select(domain.model).where(
            domain.model.listing_status == ListingStatus.APPROVED,
            domain.model.is_available.is_(True),
        )
        if city:
            stmt = stmt.where(func.lower(domain.model.city) == city.strip().lower())
        stmt = (
            stmt.order_by(domain.model.is_featured.desc(), domain.model.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_media_counts(
        db: AsyncSession, domain: ListingDomain, listing_id: uuid.UUID
    ) -> tuple[int, int, int]:
        """Return (image_count, video_count, next_display_order) for a listing."""
        result = await db.execute(
            select(
                func.count().filter(domain.media_model.media_type == MediaType.IMAGE),
                func.count().filter(domain.media_model.media_type == MediaType.VIDEO),
                func.max(domain.media_model.display_order),
            ).where(domain.media_fk_column() == listing_id)
        )
        images, videos, max_order = result.one()
        next_order = 0 if max_order is None else max_order + 1
        return int(images or 0), int(videos or 0), next_order

    @staticmethod
    async def increment_counter(
        db: AsyncSession, domain: ListingDomain, listing_id: uuid.UUID, column: str
    ) -> bool:
        """Atomic server-side bump of ``views_count`` or ``whatsapp_clicks``."""
        counter = getattr(domain.model, column)
        result = await db.execute(
            update(domain.model)
            .where(domain.model.id == listing_id)
            .values({column: counter + 1})
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return (result.rowcount or 0) > 0

    @staticmethod
    async def get_owner_totals(db: AsyncSession, domain: ListingDomain, owner_id: uuid.UUID) -> dict[str, int]:
        """Aggregate listing counts and engagement for the owner dashboard."""
        model = domain.model
        result = await db.execute(
            select(
                func.count(model.id),
                func.count(model.id).filter(model.listing_status == ListingStatus.APPROVED),
                func.count(model.id).filter(model.listing_status == ListingStatus.PENDING),
                func.count(model.id).filter(model.is_available.is_(True)),
                func.coalesce(func.sum(model.views_count), 0),
                func.coalesce(func.sum(model.whatsapp_clicks), 0),
            ).where(domain.owner_column() == owner_id)
        )
        total, approved, pending, available, views, clicks = result.one()
        return {
            "total": int(total or 0),
            "approved": int(approved or 0),
            "pending": int(pending or 0),
            "available": int(available or 0),
            "views": int(views or 0),
            "whatsapp_clicks": int(clicks or 0),
        }
