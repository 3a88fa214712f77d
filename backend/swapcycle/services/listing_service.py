"""
SwapCycle Backend — Listing Service
=====================================

What:  Listing CRUD with ownership-gated mutation.
Who:   Called by the /api/listings route handlers.

Operations:
    create_listing   authenticated; caller becomes owner
    list_listings    public; active listings only, newest first
    get_listing      public; any listing by id, with owner and offers
    update_listing   owner only; partial merge
    delete_listing   owner only; explicit cascade to offers and images

Query plan (browse):
    SELECT ... FROM listings WHERE is_active [AND category = :c]
        [AND (title ILIKE :q OR description ILIKE :q)]
    ORDER BY created_at DESC
    → idx_listings_active_created_at; images and owner via selectin loads

Cascade on delete:
    The service deletes dependent rows itself, in FK order, inside the
    request's transaction:
        swap_offers → listing_images → ratings.listing_id = NULL → listings
    Nothing relies on ON DELETE CASCADE in the store.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from swapcycle.exceptions import InternalError, NotFoundError, ValidationError
from swapcycle.models.listing import Listing, ListingImage
from swapcycle.models.offer import SwapOffer
from swapcycle.models.rating import Rating
from swapcycle.schemas.auth import Identity
from swapcycle.schemas.listing import (
    ListingCreate,
    ListingDetail,
    ListingResponse,
    ListingSummary,
    ListingUpdate,
)
from swapcycle.services.ownership import assert_owner_or_forbidden

logger = logging.getLogger(__name__)


class ListingService:
    """
    Business logic for listings.

    Error Handling Strategy:
        Application errors (NotFoundError, ForbiddenError, ValidationError)
        propagate unchanged. SQLAlchemy errors are logged with context and
        wrapped in InternalError, which hides store details from the client.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_listing(self, caller: Identity, data: ListingCreate) -> ListingResponse:
        """
        Publish a new listing owned by the caller.

        Raises:
            ValidationError: title missing or blank
        """
        title = (data.title or "").strip()
        if not title:
            raise ValidationError(message="Title required", field="title")

        listing = Listing(
            owner_id=caller.id,
            title=title,
            description=data.description,
            category=data.category,
            condition=data.condition,
            images=[
                ListingImage(url=url, ordinal=position)
                for position, url in enumerate(data.images)
            ],
        )
        try:
            self.db.add(listing)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "create_listing")

        logger.info(
            "Listing %s created by %s with %d image(s)",
            listing.id, caller.id, len(listing.images),
        )
        return ListingResponse.model_validate(listing)

    async def list_listings(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[ListingSummary]:
        """
        Browse active listings, optionally filtered.

        Args:
            query:    case-insensitive substring matched against title OR description
            category: exact category match
        """
        stmt = (
            select(Listing)
            .where(Listing.is_active.is_(True))
            .options(selectinload(Listing.images), selectinload(Listing.owner))
            .order_by(Listing.created_at.desc())
        )
        if category:
            stmt = stmt.where(Listing.category == category)
        if query:
            # autoescape: % and _ typed by the user match literally
            stmt = stmt.where(
                or_(
                    Listing.title.icontains(query, autoescape=True),
                    Listing.description.icontains(query, autoescape=True),
                )
            )

        try:
            result = await self.db.execute(stmt)
            listings = result.scalars().all()
        except SQLAlchemyError as e:
            raise self._wrap(e, "list_listings")

        return [ListingSummary.model_validate(listing) for listing in listings]

    async def get_listing(self, listing_id: uuid.UUID) -> ListingDetail:
        """
        Raises:
            NotFoundError: no listing with this id (→ 404)
        """
        try:
            result = await self.db.execute(
                select(Listing)
                .where(Listing.id == listing_id)
                .options(
                    selectinload(Listing.images),
                    selectinload(Listing.owner),
                    selectinload(Listing.offers),
                )
            )
            listing = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._wrap(e, "get_listing", listing_id)

        if listing is None:
            raise NotFoundError(resource="listing", resource_id=str(listing_id))
        return ListingDetail.model_validate(listing)

    async def update_listing(
        self,
        caller: Identity,
        listing_id: uuid.UUID,
        data: ListingUpdate,
    ) -> ListingResponse:
        """
        Apply only the fields the client supplied.

        Raises:
            NotFoundError:   no listing with this id
            ForbiddenError:  caller is not the owner
            ValidationError: blank title or null is_active supplied
        """
        listing = await self._load_with_images(listing_id)
        assert_owner_or_forbidden(caller, listing.owner_id, resource="listing")

        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()
            if not changes["title"]:
                raise ValidationError(message="Title cannot be empty", field="title")
        if "is_active" in changes and changes["is_active"] is None:
            raise ValidationError(message="is_active must be true or false", field="is_active")

        for field, value in changes.items():
            setattr(listing, field, value)

        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "update_listing", listing_id)

        logger.info("Listing %s updated: %s", listing.id, sorted(changes))
        return ListingResponse.model_validate(listing)

    async def delete_listing(self, caller: Identity, listing_id: uuid.UUID) -> None:
        """
        Delete a listing and everything that hangs off it.

        Raises:
            NotFoundError:  no listing with this id
            ForbiddenError: caller is not the owner
        """
        try:
            listing = await self.db.get(Listing, listing_id)
        except SQLAlchemyError as e:
            raise self._wrap(e, "delete_listing", listing_id)
        if listing is None:
            raise NotFoundError(resource="listing", resource_id=str(listing_id))
        assert_owner_or_forbidden(caller, listing.owner_id, resource="listing")

        try:
            offers = await self.db.execute(
                delete(SwapOffer).where(SwapOffer.listing_id == listing_id)
            )
            images = await self.db.execute(
                delete(ListingImage).where(ListingImage.listing_id == listing_id)
            )
            await self.db.execute(
                update(Rating).where(Rating.listing_id == listing_id).values(listing_id=None)
            )
            await self.db.execute(delete(Listing).where(Listing.id == listing_id))
        except SQLAlchemyError as e:
            raise self._wrap(e, "delete_listing", listing_id)

        logger.info(
            "Listing %s deleted by %s (%d offer(s), %d image(s) removed)",
            listing_id, caller.id, offers.rowcount, images.rowcount,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load_with_images(self, listing_id: uuid.UUID) -> Listing:
        try:
            result = await self.db.execute(
                select(Listing)
                .where(Listing.id == listing_id)
                .options(selectinload(Listing.images))
            )
            listing = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._wrap(e, "load_listing", listing_id)
        if listing is None:
            raise NotFoundError(resource="listing", resource_id=str(listing_id))
        return listing

    @staticmethod
    def _wrap(
        error: SQLAlchemyError,
        operation: str,
        listing_id: Optional[uuid.UUID] = None,
    ) -> InternalError:
        logger.error("Database error in %s: %s", operation, str(error), exc_info=True)
        context = {"operation": operation, "error_type": type(error).__name__}
        if listing_id is not None:
            context["listing_id"] = str(listing_id)
        return InternalError(context=context)
