"""Listing service: quota-gated writes for rentals and marketplace categories.

Creating a listing with media runs as one sequence bounded by
``WRITE_TIMEOUT_SECONDS``:

1. quota guard and media validation (nothing has been written yet)
2. ``display_order`` reserved for every file before any upload starts
3. all files uploaded concurrently
4. guard re-checked on a fresh read, then listing, media rows and usage
   counters written in one transaction

Uploaded blobs are deleted again when a later step fails. A timeout leaves
the outcome unknown and is reported as such; writes are never retried.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.database.listings_repo import ListingRepository
from app.models.listings import LISTING_DOMAINS, ListingDomain, MediaType
from app.models.models import Profile
from app.schemas.listings import (
    ListingResponse,
    MarketplaceItemCreate,
    MarketplaceItemUpdate,
    MediaItemResponse,
    RentalPropertyCreate,
    RentalPropertyUpdate,
)
from app.services.notification_service import NotificationService
from app.services.quota_guard import (
    Action,
    UsageCounts,
    check_action,
    check_media_additions,
    validate_image,
    validate_video,
)
from app.services.scenario_resolver import Scenario
from app.services.storage import StorageService, content_type_for
from app.services.subscription_service import SubscriptionService
from app.services.usage_accountant import UsageAccountant
from app.utils.datetime import as_utc
from app.utils.exceptions import (
    DatabaseException,
    ForbiddenException,
    NotFoundException,
    UploadFailedException,
    ValidationException,
    WriteOutcomeUnknownException,
)

logger = logging.getLogger(__name__)


class MediaFile(BaseModel):
    """One file received with a listing write."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: Optional[str] = None
    data: bytes
    duration_seconds: Optional[float] = None

    @property
    def media_type(self) -> MediaType:
        if self.content_type and self.content_type.startswith("video/"):
            return MediaType.VIDEO
        return MediaType.IMAGE

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class PlannedUpload(BaseModel):
    """A file with its reserved display order and storage path."""

    model_config = ConfigDict(frozen=True)

    display_order: int
    path: str
    media_type: MediaType
    content_type: str
    data: bytes


class UploadedMedia(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_order: int
    media_type: MediaType
    url: str


def get_domain(name: str) -> ListingDomain:
    domain = LISTING_DOMAINS.get(name)
    if domain is None:
        raise NotFoundException(f"Unknown listing category '{name}'")
    return domain


def plan_uploads(
    domain: ListingDomain,
    listing_id: uuid.UUID,
    files: list[MediaFile],
    start_order: int,
) -> list[PlannedUpload]:
    """Reserve ``start_order + index`` for every file before anything is uploaded."""
    return [
        PlannedUpload(
            display_order=start_order + index,
            path=StorageService.listing_media_path(
                domain.name, domain.is_rental, listing_id, start_order + index, media.filename
            ),
            media_type=media.media_type,
            content_type=media.content_type or content_type_for(media.filename, media.media_type.value),
            data=media.data,
        )
        for index, media in enumerate(files)
    ]


def _validate(schema: type[BaseModel], payload: dict) -> BaseModel:
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationException("Invalid listing data", details=exc.errors(include_url=False, include_context=False, include_input=False)) from exc


def _load_json(value: Optional[str], default: Any) -> Any:
    if not value:
        return default
    return json.loads(value)


def to_listing_response(domain: ListingDomain, listing: Any) -> ListingResponse:
    if domain.is_rental:
        details = {
            "property_type": listing.property_type,
            "address": listing.address,
            "latitude": listing.latitude,
            "longitude": listing.longitude,
            "bedrooms": listing.bedrooms,
            "bathrooms": listing.bathrooms,
            "square_meters": listing.square_meters,
            "amenities": _load_json(listing.amenities, []),
            "is_furnished": listing.is_furnished,
        }
    else:
        details = {
            "condition": listing.condition.value,
            "is_negotiable": listing.is_negotiable,
            "attributes": _load_json(listing.attributes, {}),
        }
    return ListingResponse(
        id=str(listing.id),
        domain=domain.name,
        owner_id=str(domain.owner_of(listing)),
        title=listing.title,
        description=listing.description,
        price=listing.price,
        city=listing.city,
        listing_status=listing.listing_status.value,
        is_available=listing.is_available,
        is_featured=listing.is_featured,
        views_count=listing.views_count,
        whatsapp_clicks=listing.whatsapp_clicks,
        created_at=as_utc(listing.created_at) if listing.created_at else None,
        updated_at=as_utc(listing.updated_at) if listing.updated_at else None,
        details=details,
        media=[
            MediaItemResponse(
                id=str(item.id),
                media_type=item.media_type.value,
                media_url=item.media_url,
                display_order=item.display_order,
            )
            for item in sorted(listing.media, key=lambda item: item.display_order)
        ],
    )


class ListingService:
    """Owner and public operations on listings of every domain."""

    def __init__(self, storage: StorageService, settings: Settings) -> None:
        self._storage = storage
        self._settings = settings

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _bucket(self, domain: ListingDomain) -> str:
        return getattr(self._settings, domain.bucket_setting)

    def validate_files(self, files: Iterable[MediaFile]) -> None:
        """Size/duration ceilings per file; raises ``MediaValidationException``."""
        s = self._settings
        for media in files:
            if media.media_type == MediaType.VIDEO:
                decision = validate_video(
                    media.size_bytes, media.duration_seconds, s.MAX_VIDEO_SIZE_MB, s.MAX_VIDEO_DURATION_SECONDS
                )
            else:
                decision = validate_image(media.size_bytes, s.MAX_IMAGE_SIZE_MB)
            decision.raise_for_denial()

    async def _get_scenario(self, db: AsyncSession, owner_id: uuid.UUID) -> tuple[Optional[Any], Scenario]:
        return await SubscriptionService.get_scenario(db, owner_id, self._settings)

    async def _get_owned(self, db: AsyncSession, domain: ListingDomain, listing_id: uuid.UUID, owner: Profile) -> Any:
        listing = await ListingRepository.get_listing(db, domain, listing_id)
        if listing is None:
            raise NotFoundException("Listing not found")
        if domain.owner_of(listing) != owner.id:
            raise ForbiddenException("You can only manage your own listings")
        return listing

    async def _upload_all(self, bucket: str, planned: list[PlannedUpload]) -> list[UploadedMedia]:
        """Upload concurrently; on any failure delete what did upload and raise."""

        async def _upload(item: PlannedUpload) -> UploadedMedia:
            url = await asyncio.to_thread(
                self._storage.upload_object, bucket, item.path, item.content_type, item.data
            )
            return UploadedMedia(display_order=item.display_order, media_type=item.media_type, url=url)

        results = await asyncio.gather(*(_upload(item) for item in planned), return_exceptions=True)
        uploaded = [result for result in results if isinstance(result, UploadedMedia)]
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                "Media upload failed",
                exc_info=failures[0],
                extra={"bucket": bucket, "failed": len(failures), "uploaded": len(uploaded)},
            )
            await self._delete_blobs(bucket, [item.url for item in uploaded])
            raise UploadFailedException()
        return sorted(uploaded, key=lambda item: item.display_order)

    async def _delete_blobs(self, bucket: str, urls: list[str]) -> None:
        """Best-effort cleanup; failures are logged and left for manual removal."""
        for url in urls:
            try:
                await asyncio.to_thread(self._storage.delete_by_url, bucket, url)
            except Exception:
                logger.exception("Failed to delete orphaned media", extra={"bucket": bucket, "url": url})

    async def _bounded(self, coro, operation: str, listing_id: uuid.UUID):
        try:
            return await asyncio.wait_for(coro, timeout=self._settings.WRITE_TIMEOUT_SECONDS)
        except asyncio.TimeoutError as exc:
            logger.error(
                "Listing write timed out",
                extra={"operation": operation, "listing_id": str(listing_id)},
            )
            raise WriteOutcomeUnknownException() from exc

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def parse_create_payload(self, domain: ListingDomain, payload: dict) -> dict:
        """Validate the JSON payload and return column values."""
        schema = RentalPropertyCreate if domain.is_rental else MarketplaceItemCreate
        data = _validate(schema, payload).model_dump()
        if domain.is_rental:
            data["amenities"] = json.dumps(data["amenities"])
        else:
            data["attributes"] = json.dumps(data["attributes"])
        return data

    async def create_listing(
        self,
        db: AsyncSession,
        owner: Profile,
        domain_name: str,
        payload: dict,
        files: list[MediaFile],
    ) -> ListingResponse:
        domain = get_domain(domain_name)
        fields = self.parse_create_payload(domain, payload)
        listing_id = uuid.uuid4()
        return await self._bounded(
            self._create(db, owner, domain, listing_id, fields, files), "create", listing_id
        )

    async def _create(
        self,
        db: AsyncSession,
        owner: Profile,
        domain: ListingDomain,
        listing_id: uuid.UUID,
        fields: dict,
        files: list[MediaFile],
    ) -> ListingResponse:
        images = sum(1 for media in files if media.media_type == MediaType.IMAGE)
        videos = len(files) - images

        _, scenario = await self._get_scenario(db, owner.id)
        check_action(scenario, Action.CREATE_POST, UsageCounts.from_scenario(scenario)).raise_for_denial()
        check_media_additions(scenario, images, videos).raise_for_denial()
        self.validate_files(files)

        bucket = self._bucket(domain)
        uploaded = await self._upload_all(bucket, plan_uploads(domain, listing_id, files, start_order=0))

        try:
            # Another session may have used the last post while we uploaded
            subscription, fresh = await self._get_scenario(db, owner.id)
            check_action(fresh, Action.CREATE_POST, UsageCounts.from_scenario(fresh)).raise_for_denial()

            listing = domain.model(id=listing_id, **{domain.owner_attr: owner.id}, **fields)
            listing.media = [
                domain.media_model(media_type=item.media_type, media_url=item.url, display_order=item.display_order)
                for item in uploaded
            ]
            db.add(listing)
            await db.flush()

            if subscription is not None:
                await UsageAccountant.record_post_created(db, subscription.id, images=images, videos=videos)
            await NotificationService.notify_listing_created(db, owner.id, listing.title, domain.name, listing_id)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Failed to save listing", extra={"listing_id": str(listing_id), "domain": domain.name})
            await self._delete_blobs(bucket, [item.url for item in uploaded])
            raise DatabaseException("Could not save your listing. Please try again.") from exc
        except Exception:
            await db.rollback()
            await self._delete_blobs(bucket, [item.url for item in uploaded])
            raise

        logger.info(
            "Listing created",
            extra={"listing_id": str(listing_id), "domain": domain.name, "owner_id": str(owner.id), "media": len(uploaded)},
        )
        return to_listing_response(domain, listing)

    # ------------------------------------------------------------------
    # Owner edits
    # ------------------------------------------------------------------

    async def _require_edit(self, db: AsyncSession, owner: Profile) -> Scenario:
        _, scenario = await self._get_scenario(db, owner.id)
        check_action(scenario, Action.EDIT_LISTING, UsageCounts.from_scenario(scenario)).raise_for_denial()
        return scenario

    async def update_listing(
        self,
        db: AsyncSession,
        owner: Profile,
        domain_name: str,
        listing_id: uuid.UUID,
        payload: dict,
    ) -> ListingResponse:
        domain = get_domain(domain_name)
        schema = RentalPropertyUpdate if domain.is_rental else MarketplaceItemUpdate
        changes = _validate(schema, payload).model_dump(exclude_unset=True)
        if not changes:
            raise ValidationException("Nothing to update")

        listing = await self._get_owned(db, domain, listing_id, owner)
        await self._require_edit(db, owner)

        if "amenities" in changes:
            changes["amenities"] = json.dumps(changes["amenities"] or [])
        if "attributes" in changes:
            changes["attributes"] = json.dumps(changes["attributes"] or {})
        for key, value in changes.items():
            setattr(listing, key, value)

        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Failed to update listing", extra={"listing_id": str(listing_id)})
            raise DatabaseException("Could not update your listing. Please try again.") from exc
        logger.info("Listing updated", extra={"listing_id": str(listing_id), "fields": sorted(changes)})
        return to_listing_response(domain, listing)

    async def add_media(
        self,
        db: AsyncSession,
        owner: Profile,
        domain_name: str,
        listing_id: uuid.UUID,
        files: list[MediaFile],
    ) -> ListingResponse:
        domain = get_domain(domain_name)
        if not files:
            raise ValidationException("No files were provided")
        return await self._bounded(self._add_media(db, owner, domain, listing_id, files), "add_media", listing_id)

    async def _add_media(
        self,
        db: AsyncSession,
        owner: Profile,
        domain: ListingDomain,
        listing_id: uuid.UUID,
        files: list[MediaFile],
    ) -> ListingResponse:
        listing = await self._get_owned(db, domain, listing_id, owner)
        scenario = await self._require_edit(db, owner)

        existing_images, existing_videos, next_order = await ListingRepository.get_media_counts(db, domain, listing_id)
        images = sum(1 for media in files if media.media_type == MediaType.IMAGE)
        videos = len(files) - images
        check_media_additions(scenario, images, videos, existing_images, existing_videos).raise_for_denial()
        self.validate_files(files)

        bucket = self._bucket(domain)
        uploaded = await self._upload_all(bucket, plan_uploads(domain, listing_id, files, start_order=next_order))

        try:
            subscription, _ = await self._get_scenario(db, owner.id)
            for item in uploaded:
                listing.media.append(
                    domain.media_model(media_type=item.media_type, media_url=item.url, display_order=item.display_order)
                )
            await db.flush()
            if subscription is not None:
                await UsageAccountant.record_media_added(db, subscription.id, images=images, videos=videos)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Failed to save media", extra={"listing_id": str(listing_id)})
            await self._delete_blobs(bucket, [item.url for item in uploaded])
            raise DatabaseException("Could not save your media. Please try again.") from exc
        except Exception:
            await db.rollback()
            await self._delete_blobs(bucket, [item.url for item in uploaded])
            raise

        logger.info("Media added", extra={"listing_id": str(listing_id), "count": len(uploaded)})
        return to_listing_response(domain, listing)

    async def delete_media(
        self,
        db: AsyncSession,
        owner: Profile,
        domain_name: str,
        listing_id: uuid.UUID,
        media_id: uuid.UUID,
    ) -> None:
        domain = get_domain(domain_name)
        listing = await self._get_owned(db, domain, listing_id, owner)
        await self._require_edit(db, owner)

        item = next((media for media in listing.media if media.id == media_id), None)
        if item is None:
            raise NotFoundException("Media item not found")
        url = item.media_url
        listing.media.remove(item)
        await db.commit()
        await self._delete_blobs(self._bucket(domain), [url])
        logger.info("Media removed", extra={"listing_id": str(listing_id), "media_id": str(media_id)})

    async def mark_unavailable(
        self,
        db: AsyncSession,
        owner: Profile,
        domain_name: str,
        listing_id: uuid.UUID,
    ) -> ListingResponse:
        """Soft removal ("mark as sold"); allowed in every scenario."""
        domain = get_domain(domain_name)
        listing = await self._get_owned(db, domain, listing_id, owner)
        listing.is_available = False
        await db.commit()
        logger.info("Listing marked unavailable", extra={"listing_id": str(listing_id)})
        return to_listing_response(domain, listing)

    async def delete_listing(
        self,
        db: AsyncSession,
        owner: Profile,
        domain_name: str,
        listing_id: uuid.UUID,
    ) -> None:
        """Hard delete; media rows cascade and blobs are removed afterwards."""
        domain = get_domain(domain_name)
        listing = await self._get_owned(db, domain, listing_id, owner)
        urls = [item.media_url for item in listing.media]
        await db.delete(listing)
        await db.commit()
        await self._delete_blobs(self._bucket(domain), urls)
        logger.info("Listing deleted", extra={"listing_id": str(listing_id), "domain": domain.name})

    # ------------------------------------------------------------------
    # Reads and counters
    # ------------------------------------------------------------------

    @staticmethod
    async def list_mine(db: AsyncSession, owner_id: uuid.UUID) -> list[ListingResponse]:
        listings: list[ListingResponse] = []
        for domain in LISTING_DOMAINS.values():
            rows = await ListingRepository.get_owner_listings(db, domain, owner_id)
            listings.extend(to_listing_response(domain, row) for row in rows)
        listings.sort(key=lambda listing: listing.created_at, reverse=True)
        return listings

    @staticmethod
    async def list_public(
        db: AsyncSession,
        domain_name: str,
        city: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ListingResponse]:
        domain = get_domain(domain_name)
        rows = await ListingRepository.get_public_listings(db, domain, city=city, limit=limit, offset=offset)
        return [to_listing_response(domain, row) for row in rows]

    @staticmethod
    async def get_detail(db: AsyncSession, domain_name: str, listing_id: uuid.UUID) -> ListingResponse:
        domain = get_domain(domain_name)
        listing = await ListingRepository.get_listing(db, domain, listing_id)
        if listing is None:
            raise NotFoundException("Listing not found")
        return to_listing_response(domain, listing)

    @staticmethod
    async def record_view(db: AsyncSession, domain_name: str, listing_id: uuid.UUID) -> None:
        if not await ListingRepository.increment_counter(db, get_domain(domain_name), listing_id, "views_count"):
            raise NotFoundException("Listing not found")

    @staticmethod
    async def record_whatsapp_click(db: AsyncSession, domain_name: str, listing_id: uuid.UUID) -> None:
        if not await ListingRepository.increment_counter(db, get_domain(domain_name), listing_id, "whatsapp_clicks"):
            raise NotFoundException("Listing not found")
