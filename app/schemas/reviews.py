"""Review schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    id: str
    reviewer_id: str
    listing_domain: str
    listing_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class ReviewSummary(BaseModel):
    average_rating: float
    review_count: int
    reviews: list[ReviewResponse]
