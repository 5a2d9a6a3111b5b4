"""Listing schemas for rentals and marketplace categories."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.listings import ItemCondition


class RentalPropertyCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    property_type: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., gt=0)
    city: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    square_meters: Optional[float] = Field(None, gt=0)
    amenities: list[str] = Field(default_factory=list)
    is_furnished: bool = False


class RentalPropertyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    property_type: Optional[str] = Field(None, min_length=1, max_length=50)
    price: Optional[Decimal] = Field(None, gt=0)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    square_meters: Optional[float] = Field(None, gt=0)
    amenities: Optional[list[str]] = None
    is_furnished: Optional[bool] = None
    is_available: Optional[bool] = None


class MarketplaceItemCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    price: Decimal = Field(..., gt=0)
    city: str = Field(..., min_length=1, max_length=100)
    condition: ItemCondition
    is_negotiable: bool = False
    attributes: dict[str, Any] = Field(default_factory=dict, description="Category-specific fields")


class MarketplaceItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    condition: Optional[ItemCondition] = None
    is_negotiable: Optional[bool] = None
    attributes: Optional[dict[str, Any]] = None
    is_available: Optional[bool] = None


class MediaItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    media_type: str
    media_url: str
    display_order: int


class ListingResponse(BaseModel):
    """Listing as returned by the API, regardless of domain."""

    id: str
    domain: str
    owner_id: str
    title: str
    description: str
    price: Decimal
    city: str
    listing_status: str
    is_available: bool
    is_featured: bool
    views_count: int
    whatsapp_clicks: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    details: dict[str, Any] = Field(default_factory=dict)
    media: list[MediaItemResponse] = Field(default_factory=list)
