"""Reviews of listings: one review per user per listing."""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.listings_repo import ListingRepository
from app.models.models import Profile, Review
from app.schemas.reviews import ReviewCreateRequest, ReviewResponse, ReviewSummary
from app.services.listing_service import get_domain
from app.utils.datetime import as_utc
from app.utils.exceptions import AlreadyReviewedException, NotFoundException, ValidationException

logger = logging.getLogger(__name__)


def to_review_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=str(review.id),
        reviewer_id=str(review.reviewer_id),
        listing_domain=review.listing_domain,
        listing_id=str(review.listing_id),
        rating=review.rating,
        comment=review.comment,
        created_at=as_utc(review.created_at),
    )


class ReviewService:
    """Service for listing reviews."""

    @staticmethod
    async def create_review(
        db: AsyncSession,
        reviewer: Profile,
        domain_name: str,
        listing_id: uuid.UUID,
        payload: ReviewCreateRequest,
    ) -> ReviewResponse:
        domain = get_domain(domain_name)
        listing = await ListingRepository.get_listing(db, domain, listing_id)
        if listing is None:
            raise NotFoundException("Listing not found")
        if domain.owner_of(listing) == reviewer.id:
            raise ValidationException("You cannot review your own listing")

        review = Review(
            reviewer_id=reviewer.id,
            listing_domain=domain.name,
            listing_id=listing_id,
            rating=payload.rating,
            comment=payload.comment.strip() if payload.comment else None,
        )
        db.add(review)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise AlreadyReviewedException() from exc
        logger.info("Review created", extra={"listing_id": str(listing_id), "rating": payload.rating})
        return to_review_response(review)

    @staticmethod
    async def get_listing_reviews(
        db: AsyncSession,
        domain_name: str,
        listing_id: uuid.UUID,
        limit: int = 50,
    ) -> ReviewSummary:
        domain = get_domain(domain_name)
        filters = (Review.listing_domain == domain.name, Review.listing_id == listing_id)

        stats = await db.execute(select(func.avg(Review.rating), func.count(Review.id)).where(*filters))
        average, count = stats.one()

        result = await db.execute(select(Review).where(*filters).order_by(Review.created_at.desc()).limit(limit))
        return ReviewSummary(
            average_rating=round(float(average), 2) if average is not None else 0.0,
            review_count=int(count or 0),
            reviews=[to_review_response(review) for review in result.scalars().all()],
        )
