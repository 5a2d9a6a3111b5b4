"""Listing routes for rentals and the marketplace categories.

``domain`` is ``rentals`` or one of the marketplace category names.
"""

import json
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body, File, Form, Query, UploadFile, status

from app.api.deps import CurrentUser, DB, Listings
from app.services.listing_service import ListingService, MediaFile
from app.utils.envelopes import api_page, api_success
from app.utils.exceptions import ValidationException

router = APIRouter(tags=["listings"])


async def _read_files(files: list[UploadFile], durations: Optional[list[float]]) -> list[MediaFile]:
    """Read uploads into memory; ``durations`` lines up with ``files`` (seconds, videos only)."""
    durations = durations or []
    media = []
    for index, upload in enumerate(files):
        duration = durations[index] if index < len(durations) and durations[index] > 0 else None
        media.append(
            MediaFile(
                filename=upload.filename or f"upload_{index}",
                content_type=upload.content_type,
                data=await upload.read(),
                duration_seconds=duration,
            )
        )
    return media


def _parse_payload(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationException("payload must be a JSON object")
    if not isinstance(payload, dict):
        raise ValidationException("payload must be a JSON object")
    return payload


@router.get("/listings/mine", response_model=dict)
async def list_my_listings(current_user: CurrentUser, db: DB):
    """All listings of the current user across every domain."""
    listings = await ListingService.list_mine(db, current_user.id)
    return api_success({"listings": [item.model_dump() for item in listings]})


@router.post("/listings/{domain}", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_listing(
    domain: str,
    current_user: CurrentUser,
    db: DB,
    listings: Listings,
    payload: str = Form(..., description="Listing fields as a JSON object"),
    files: list[UploadFile] = File(default=[]),
    durations: Optional[list[float]] = Form(default=None),
):
    """Create a listing with its media (quota-gated)."""
    media = await _read_files(files, durations)
    listing = await listings.create_listing(db, current_user, domain, _parse_payload(payload), media)
    return api_success(listing.model_dump())


@router.get("/listings/{domain}", response_model=dict)
async def list_public_listings(
    domain: str,
    db: DB,
    city: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    listings = await ListingService.list_public(db, domain, city=city, limit=limit, offset=offset)
    return api_page("listings", [item.model_dump() for item in listings], limit, offset)


@router.get("/listings/{domain}/{listing_id}", response_model=dict)
async def get_listing(domain: str, listing_id: uuid.UUID, db: DB):
    listing = await ListingService.get_detail(db, domain, listing_id)
    return api_success(listing.model_dump())


@router.patch("/listings/{domain}/{listing_id}", response_model=dict)
async def update_listing(
    domain: str,
    listing_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    listings: Listings,
    payload: dict[str, Any] = Body(...),
):
    listing = await listings.update_listing(db, current_user, domain, listing_id, payload)
    return api_success(listing.model_dump())


@router.post("/listings/{domain}/{listing_id}/media", response_model=dict, status_code=status.HTTP_201_CREATED)
async def add_listing_media(
    domain: str,
    listing_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    listings: Listings,
    files: list[UploadFile] = File(...),
    durations: Optional[list[float]] = Form(default=None),
):
    media = await _read_files(files, durations)
    listing = await listings.add_media(db, current_user, domain, listing_id, media)
    return api_success(listing.model_dump())


@router.delete("/listings/{domain}/{listing_id}/media/{media_id}", response_model=dict)
async def delete_listing_media(
    domain: str,
    listing_id: uuid.UUID,
    media_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    listings: Listings,
):
    await listings.delete_media(db, current_user, domain, listing_id, media_id)
    return api_success({"deleted": True})


@router.post("/listings/{domain}/{listing_id}/unavailable", response_model=dict)
async def mark_listing_unavailable(
    domain: str,
    listing_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    listings: Listings,
):
    """Mark a listing as sold / no longer available."""
    listing = await listings.mark_unavailable(db, current_user, domain, listing_id)
    return api_success(listing.model_dump())


@router.delete("/listings/{domain}/{listing_id}", response_model=dict)
async def delete_listing(
    domain: str,
    listing_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    listings: Listings,
):
    await listings.delete_listing(db, current_user, domain, listing_id)
    return api_success({"deleted": True})


@router.post("/listings/{domain}/{listing_id}/views", response_model=dict)
async def record_listing_view(domain: str, listing_id: uuid.UUID, db: DB):
    await ListingService.record_view(db, domain, listing_id)
    return api_success({"recorded": True})


@router.post("/listings/{domain}/{listing_id}/whatsapp-clicks", response_model=dict)
async def record_whatsapp_click(domain: str, listing_id: uuid.UUID, db: DB):
    await ListingService.record_whatsapp_click(db, domain, listing_id)
    return api_success({"recorded": True})
