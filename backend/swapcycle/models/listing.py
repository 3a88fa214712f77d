"""
SwapCycle Backend — Listing & ListingImage SQLAlchemy Models
==============================================================

What:  ORM models for the `listings` and `listing_images` tables.
Who:   Owned by ListingService; OfferService reads Listing.owner_id to decide
       who may act on an offer.

Table Design Rationale:
    - owner_id: plain foreign key to users; set from the authenticated caller
      at creation and never updated
    - is_active: soft visibility flag; browse only returns active listings,
      fetch-by-id returns either
    - listing_images.ordinal: position of the URL in the array the client sent;
      the relationship is ordered by it so images come back in upload order

Cascade:
    Relationships carry no ORM delete cascade. ListingService.delete_listing
    removes offers and images itself with explicit DELETE statements, so the
    behaviour does not depend on the store's foreign-key enforcement
    (SQLite ships with it off).

Index on (is_active, created_at DESC):
    Serves the browse query: WHERE is_active ORDER BY created_at DESC.
"""

import uuid
from datetime import datetime
from typing import List, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swapcycle.database import Base
from swapcycle.models.user import User, utcnow

if TYPE_CHECKING:
    from swapcycle.models.offer import SwapOffer


class Listing(Base):
    """An item a user offers for swap."""

    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    condition: Mapped[str | None] = mapped_column(String(50), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    owner: Mapped[User] = relationship(User)

    images: Mapped[List["ListingImage"]] = relationship(
        back_populates="listing",
        order_by="ListingImage.ordinal",
    )

    offers: Mapped[List["SwapOffer"]] = relationship(
        back_populates="listing",
        order_by="SwapOffer.created_at",
    )

    __table_args__ = (
        Index("idx_listings_active_created_at", "is_active", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title='{self.title}', owner_id={self.owner_id})>"


class ListingImage(Base):
    """An image URL at a fixed position within its listing."""

    __tablename__ = "listing_images"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id"),
        nullable=False,
        index=True,
    )

    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    ordinal: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    listing: Mapped[Listing] = relationship(back_populates="images")
