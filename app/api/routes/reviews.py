"""Listing review routes."""

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import CurrentUser, DB
from app.schemas.reviews import ReviewCreateRequest
from app.services.review_service import ReviewService
from app.utils.envelopes import api_success

router = APIRouter(tags=["reviews"])


@router.post("/listings/{domain}/{listing_id}/reviews", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_review(
    domain: str,
    listing_id: uuid.UUID,
    payload: ReviewCreateRequest,
    current_user: CurrentUser,
    db: DB,
):
    review = await ReviewService.create_review(db, current_user, domain, listing_id, payload)
    return api_success(review.model_dump())


@router.get("/listings/{domain}/{listing_id}/reviews", response_model=dict)
async def list_reviews(
    domain: str,
    listing_id: uuid.UUID,
    db: DB,
    limit: int = Query(50, ge=1, le=200),
):
    summary = await ReviewService.get_listing_reviews(db, domain, listing_id, limit=limit)
    return api_success(summary.model_dump())
