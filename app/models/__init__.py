from app.models.base import Base
from app.models.listings import (
    LISTING_DOMAINS,
    MARKETPLACE_CATEGORIES,
    RENTALS,
    ItemCondition,
    ListingDomain,
    ListingStatus,
    MediaType,
    RentalProperty,
    RentalPropertyMedia,
)
from app.models.models import Notification, PaymentTransaction, Profile, Review, SupportMessage
from app.models.subscription import SubscriptionPlan, UserSubscription
from app.models.subscription_enums import PaymentMethod, PaymentStatus, SubscriptionStatus

__all__ = [
    "Base",
    "LISTING_DOMAINS",
    "MARKETPLACE_CATEGORIES",
    "RENTALS",
    "ItemCondition",
    "ListingDomain",
    "ListingStatus",
    "MediaType",
    "Notification",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentTransaction",
    "Profile",
    "RentalProperty",
    "RentalPropertyMedia",
    "Review",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "SupportMessage",
    "UserSubscription",
]
