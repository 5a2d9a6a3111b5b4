"""Listing models for the rentals domain and the seven marketplace categories.

Every marketplace category has its own table and its own ``<category>_media``
table with identical shape. ``LISTING_DOMAINS`` maps the public domain name
used in URLs to the models, owner column and storage bucket of that domain.
"""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import NamedTuple, Optional

from sqlalchemy import Boolean, Enum, Float, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, enum_values
from app.models.mixins import CreatedAtMixin, TimestampMixin, UUIDMixin


class ListingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class ItemCondition(str, enum.Enum):
    NEW = "new"
    LIKE_NEW = "like_new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ListingMixin(UUIDMixin, TimestampMixin):
    """Columns shared by rental properties and marketplace items."""

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    city: Mapped[str] = mapped_column(String, nullable=False)
    listing_status: Mapped[ListingStatus] = mapped_column(
        Enum(ListingStatus, name="listing_status", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=ListingStatus.PENDING,
        server_default=text("'pending'"),
    )
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    whatsapp_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))


class MarketplaceItemMixin(ListingMixin):
    seller_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    condition: Mapped[ItemCondition] = mapped_column(
        Enum(ItemCondition, name="item_condition", native_enum=False, values_callable=enum_values), nullable=False
    )
    is_negotiable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    # Category-specific fields (brand, mileage, size, ...) stored as JSON text
    attributes: Mapped[Optional[str]] = mapped_column(Text)


class MediaMixin(UUIDMixin, CreatedAtMixin):
    media_type: Mapped[MediaType] = mapped_column(
        Enum(MediaType, name="media_type", native_enum=False, values_callable=enum_values), nullable=False
    )
    media_url: Mapped[str] = mapped_column(Text, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False)


# ---------------------------------------------------------------------------
# Rentals
# ---------------------------------------------------------------------------


class RentalProperty(ListingMixin, Base):
    __tablename__ = "rental_properties"
    __table_args__ = (Index("ix_rental_properties_landlord", "landlord_id"),)

    landlord_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    property_type: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer)
    square_meters: Mapped[Optional[float]] = mapped_column(Float)
    # JSON array stored as TEXT
    amenities: Mapped[Optional[str]] = mapped_column(Text)
    is_furnished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))

    media: Mapped[list["RentalPropertyMedia"]] = relationship(
        "RentalPropertyMedia",
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="RentalPropertyMedia.display_order",
        lazy="selectin",
    )


class RentalPropertyMedia(MediaMixin, Base):
    __tablename__ = "rental_property_media"
    __table_args__ = (UniqueConstraint("property_id", "display_order", name="uq_rental_media_order"),)

    property_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("rental_properties.id", ondelete="CASCADE"), nullable=False
    )

    listing: Mapped[RentalProperty] = relationship("RentalProperty", back_populates="media")


# ---------------------------------------------------------------------------
# Marketplace categories
# ---------------------------------------------------------------------------


class Electronics(MarketplaceItemMixin, Base):
    __tablename__ = "electronics"
    __table_args__ = (Index("ix_electronics_seller", "seller_id"),)

    media: Mapped[list["ElectronicsMedia"]] = relationship(
        "ElectronicsMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="ElectronicsMedia.display_order", lazy="selectin",
    )


class ElectronicsMedia(MediaMixin, Base):
    __tablename__ = "electronics_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_electronics_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("electronics.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[Electronics] = relationship("Electronics", back_populates="media")


class Car(MarketplaceItemMixin, Base):
    __tablename__ = "cars"
    __table_args__ = (Index("ix_cars_seller", "seller_id"),)

    media: Mapped[list["CarMedia"]] = relationship(
        "CarMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="CarMedia.display_order", lazy="selectin",
    )


class CarMedia(MediaMixin, Base):
    __tablename__ = "cars_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_cars_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("cars.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[Car] = relationship("Car", back_populates="media")


class HouseItem(MarketplaceItemMixin, Base):
    __tablename__ = "house_items"
    __table_args__ = (Index("ix_house_items_seller", "seller_id"),)

    media: Mapped[list["HouseItemMedia"]] = relationship(
        "HouseItemMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="HouseItemMedia.display_order", lazy="selectin",
    )


class HouseItemMedia(MediaMixin, Base):
    __tablename__ = "house_items_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_house_items_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("house_items.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[HouseItem] = relationship("HouseItem", back_populates="media")


class FashionItem(MarketplaceItemMixin, Base):
    __tablename__ = "fashion"
    __table_args__ = (Index("ix_fashion_seller", "seller_id"),)

    media: Mapped[list["FashionMedia"]] = relationship(
        "FashionMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="FashionMedia.display_order", lazy="selectin",
    )


class FashionMedia(MediaMixin, Base):
    __tablename__ = "fashion_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_fashion_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("fashion.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[FashionItem] = relationship("FashionItem", back_populates="media")


class CosmeticItem(MarketplaceItemMixin, Base):
    __tablename__ = "cosmetics"
    __table_args__ = (Index("ix_cosmetics_seller", "seller_id"),)

    media: Mapped[list["CosmeticMedia"]] = relationship(
        "CosmeticMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="CosmeticMedia.display_order", lazy="selectin",
    )


class CosmeticMedia(MediaMixin, Base):
    __tablename__ = "cosmetics_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_cosmetics_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("cosmetics.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[CosmeticItem] = relationship("CosmeticItem", back_populates="media")


class Business(MarketplaceItemMixin, Base):
    __tablename__ = "businesses"
    __table_args__ = (Index("ix_businesses_seller", "seller_id"),)

    media: Mapped[list["BusinessMedia"]] = relationship(
        "BusinessMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="BusinessMedia.display_order", lazy="selectin",
    )


class BusinessMedia(MediaMixin, Base):
    __tablename__ = "businesses_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_businesses_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[Business] = relationship("Business", back_populates="media")


class PropertyForSale(MarketplaceItemMixin, Base):
    __tablename__ = "properties_for_sale"
    __table_args__ = (Index("ix_properties_for_sale_seller", "seller_id"),)

    media: Mapped[list["PropertyForSaleMedia"]] = relationship(
        "PropertyForSaleMedia", back_populates="listing", cascade="all, delete-orphan",
        order_by="PropertyForSaleMedia.display_order", lazy="selectin",
    )


class PropertyForSaleMedia(MediaMixin, Base):
    __tablename__ = "properties_for_sale_media"
    __table_args__ = (UniqueConstraint("item_id", "display_order", name="uq_properties_for_sale_media_order"),)

    item_id: Mapped[uuid.UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("properties_for_sale.id", ondelete="CASCADE"), nullable=False
    )
    listing: Mapped[PropertyForSale] = relationship("PropertyForSale", back_populates="media")


# ---------------------------------------------------------------------------
# Domain registry
# ---------------------------------------------------------------------------


class ListingDomain(NamedTuple):
    name: str
    model: type
    media_model: type
    owner_attr: str
    media_fk_attr: str
    # Settings attribute holding the bucket name
    bucket_setting: str

    @property
    def is_rental(self) -> bool:
        return self.name == RENTALS

    def owner_column(self):
        return getattr(self.model, self.owner_attr)

    def media_fk_column(self):
        return getattr(self.media_model, self.media_fk_attr)

    def owner_of(self, listing) -> uuid.UUID:
        return getattr(listing, self.owner_attr)


RENTALS = "rentals"

MARKETPLACE_CATEGORIES = (
    "electronics",
    "cars",
    "house_items",
    "fashion",
    "cosmetics",
    "businesses",
    "properties_for_sale",
)

LISTING_DOMAINS: dict[str, ListingDomain] = {
    RENTALS: ListingDomain(
        RENTALS, RentalProperty, RentalPropertyMedia, "landlord_id", "property_id", "BUCKET_RENTAL_MEDIA"
    ),
    "electronics": ListingDomain(
        "electronics", Electronics, ElectronicsMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"
    ),
    "cars": ListingDomain("cars", Car, CarMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"),
    "house_items": ListingDomain(
        "house_items", HouseItem, HouseItemMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"
    ),
    "fashion": ListingDomain(
        "fashion", FashionItem, FashionMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"
    ),
    "cosmetics": ListingDomain(
        "cosmetics", CosmeticItem, CosmeticMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"
    ),
    "businesses": ListingDomain(
        "businesses", Business, BusinessMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"
    ),
    "properties_for_sale": ListingDomain(
        "properties_for_sale", PropertyForSale, PropertyForSaleMedia, "seller_id", "item_id", "BUCKET_MARKETPLACE_MEDIA"
    ),
}
