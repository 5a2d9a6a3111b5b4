import uuid
from decimal import Decimal

import pytest

from app.models import Profile, RentalProperty
from app.schemas.reviews import ReviewCreateRequest
from app.schemas.users import ProfileUpdate
from app.services.notification_service import NotificationService
from app.services.profile_service import ProfileService, to_profile_response
from app.services.review_service import ReviewService
from app.services.support_service import SupportService
from app.utils.exceptions import AppException, NotFoundException, ValidationException


async def _rental(session, owner_id):
    listing = RentalProperty(
        landlord_id=owner_id,
        title="Room",
        description="Single room",
        property_type="room",
        price=Decimal("30000"),
        city="Limbe",
    )
    session.add(listing)
    await session.commit()
    return listing


async def _other_profile(session):
    other = Profile(id=uuid.uuid4(), email="buyer@example.com")
    session.add(other)
    await session.commit()
    return other


async def test_reviews_one_per_user_and_not_own_listing(session, profile):
    listing = await _rental(session, profile.id)
    buyer = await _other_profile(session)

    with pytest.raises(ValidationException):
        await ReviewService.create_review(session, profile, "rentals", listing.id, ReviewCreateRequest(rating=5))

    await ReviewService.create_review(
        session, buyer, "rentals", listing.id, ReviewCreateRequest(rating=4, comment="  Clean  ")
    )
    with pytest.raises(AppException) as exc_info:
        await ReviewService.create_review(session, buyer, "rentals", listing.id, ReviewCreateRequest(rating=2))
    assert exc_info.value.code == "ALREADY_REVIEWED"
    assert exc_info.value.status_code == 409

    summary = await ReviewService.get_listing_reviews(session, "rentals", listing.id)
    assert summary.review_count == 1
    assert summary.average_rating == 4.0
    assert summary.reviews[0].comment == "Clean"


async def test_review_of_missing_listing(session, profile):
    with pytest.raises(NotFoundException):
        await ReviewService.create_review(session, profile, "cars", uuid.uuid4(), ReviewCreateRequest(rating=3))


async def test_notifications_read_flow(session, profile):
    first = await NotificationService.create_notification(session, profile.id, "info", "Hello", "First")
    await NotificationService.create_notification(session, profile.id, "info", "Hello", "Second", data={"k": 1})
    assert await NotificationService.unread_count(session, profile.id) == 2

    await NotificationService.mark_read(session, profile.id, first.id)
    assert await NotificationService.unread_count(session, profile.id) == 1

    assert await NotificationService.mark_all_read(session, profile.id) == 1
    assert await NotificationService.unread_count(session, profile.id) == 0

    with pytest.raises(NotFoundException):
        await NotificationService.mark_read(session, uuid.uuid4(), first.id)


async def test_support_message_is_trimmed(session, profile):
    service = SupportService(session)

    created = await service.create_support_message("  Ada  ", "   ", "  Help me  ", profile.id)
    response = SupportService.to_response(created)

    assert response.full_name == "Ada"
    assert response.subject is None
    assert response.message == "Help me"
    assert response.status == "open"
    assert [item.id for item in await service.get_user_support_messages(profile.id)] == [created.id]

    with pytest.raises(ValidationException):
        await service.create_support_message("Ada", None, "   ", profile.id)


async def test_profile_created_from_claims(session):
    user_id = uuid.uuid4()
    claims = {"email": "new@example.com", "phone": "+237670111111", "user_metadata": {"full_name": "New User"}}

    created = await ProfileService.get_or_create(session, user_id, claims)
    again = await ProfileService.get_or_create(session, user_id, {})

    assert again is created
    response = to_profile_response(created)
    assert response.full_name == "New User"
    assert response.whatsapp_link == "https://wa.me/237670111111"


async def test_profile_update_validates_phone(session, profile):
    with pytest.raises(ValidationException) as exc_info:
        await ProfileService.update_profile(session, profile, ProfileUpdate(whatsapp_number="12345"))
    assert exc_info.value.details == {"field": "whatsapp_number"}

    updated = await ProfileService.update_profile(
        session, profile, ProfileUpdate(whatsapp_number="+237 699 000 000", city="Douala")
    )
    assert updated.whatsapp_number == "+237699000000"
    assert to_profile_response(updated).whatsapp_link == "https://wa.me/237699000000"


async def test_avatar_replaces_previous_object(session, settings, profile, storage):
    profile.avatar_url = "https://cdn.test/profile-pictures/old_0.jpg"
    await session.commit()

    updated = await ProfileService.upload_avatar(
        session, profile, storage, settings, "me_0.png", "image/png", b"png"
    )

    assert updated.avatar_url in storage.completed
    assert storage.deleted == ["https://cdn.test/profile-pictures/old_0.jpg"]


async def test_avatar_must_be_image(session, settings, profile, storage):
    with pytest.raises(ValidationException):
        await ProfileService.upload_avatar(session, profile, storage, settings, "doc.pdf", "application/pdf", b"%PDF")
    assert storage.completed == []
