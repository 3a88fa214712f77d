"""
SwapCycle Backend — Offer Service (Swap Offer Lifecycle)
==========================================================

What:  Proposing swap offers and driving them through their lifecycle.
Who:   Called by the /api/offers route handlers.

Authorization is split by role:
    propose  any authenticated user EXCEPT the listing owner
    act      ONLY the listing owner; the proposer never changes an offer's status

Transition rules (see models/offer.py for the full diagram):
    accept    pending  → accepted
    reject    pending  → rejected
    complete  accepted → completed
    Anything else is rejected with ValidationError and leaves the row untouched.

Concurrency:
    act() reads the offer, checks the transition, and writes the new status in
    the request's transaction without a row lock. Two owners' tabs acting on
    the same offer at once resolve as last-write-wins.
"""

import logging
import uuid
from typing import List, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from swapcycle.exceptions import InternalError, NotFoundError, ValidationError
from swapcycle.models.listing import Listing
from swapcycle.models.offer import OfferAction, OfferStatus, SwapOffer, can_transition
from swapcycle.models.user import utcnow
from swapcycle.schemas.auth import Identity
from swapcycle.schemas.inbox import CallerOffersResponse, OfferWithListing
from swapcycle.schemas.offer import OfferResponse
from swapcycle.services.ownership import assert_owner_or_forbidden

logger = logging.getLogger(__name__)


class OfferService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def propose(
        self,
        caller: Identity,
        listing_id: uuid.UUID,
        offered_text: str | None = None,
    ) -> OfferResponse:
        """
        Create a pending offer on someone else's listing.

        Repeated proposals by the same user on the same listing are allowed;
        each one is a separate pending offer.

        Raises:
            NotFoundError:   no listing with this id
            ValidationError: caller owns the listing
        """
        try:
            listing = await self.db.get(Listing, listing_id)
        except SQLAlchemyError as e:
            raise self._wrap(e, "propose", listing_id=listing_id)

        if listing is None:
            raise NotFoundError(resource="listing", resource_id=str(listing_id))
        if listing.owner_id == caller.id:
            raise ValidationError(message="Cannot offer on your own listing")

        offer = SwapOffer(
            listing_id=listing.id,
            proposer_id=caller.id,
            offered_text=offered_text,
            status=OfferStatus.PENDING.value,
        )
        try:
            self.db.add(offer)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "propose", listing_id=listing_id)

        logger.info("Offer %s proposed by %s on listing %s", offer.id, caller.id, listing.id)
        return OfferResponse.model_validate(offer)

    async def act(
        self,
        caller: Identity,
        offer_id: uuid.UUID,
        action: Union[OfferAction, str],
    ) -> OfferResponse:
        """
        Apply accept/reject/complete as the listing owner.

        Check order: offer exists → caller owns the listing → action known
        → transition legal from the current status.

        Raises:
            NotFoundError:   no offer with this id
            ForbiddenError:  caller does not own the offer's listing
            ValidationError: unknown action, or illegal transition
        """
        try:
            result = await self.db.execute(
                select(SwapOffer)
                .where(SwapOffer.id == offer_id)
                .options(selectinload(SwapOffer.listing))
            )
            offer = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._wrap(e, "act", offer_id=offer_id)

        if offer is None:
            raise NotFoundError(resource="offer", resource_id=str(offer_id))
        assert_owner_or_forbidden(
            caller,
            offer.listing.owner_id,
            resource="offer",
            message="Only owner can act",
        )

        try:
            action = OfferAction(action)
        except ValueError:
            raise ValidationError(
                message=f"Unknown action '{action}'. Must be one of: accept, reject, complete",
                field="action",
            )

        current = OfferStatus(offer.status)
        target = action.target_status
        if not can_transition(current, target):
            raise ValidationError(
                message=f"Cannot {action.value} an offer that is {current.value}",
                field="action",
                context={"current_status": current.value, "requested": action.value},
            )

        offer.status = target.value
        offer.updated_at = utcnow()
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "act", offer_id=offer_id)

        logger.info(
            "Offer %s: %s → %s by owner %s",
            offer.id, current.value, target.value, caller.id,
        )
        return OfferResponse.model_validate(offer)

    async def list_for_caller(self, caller: Identity) -> CallerOffersResponse:
        """Offers the caller made, and offers made on the caller's listings."""
        as_proposer_stmt = (
            select(SwapOffer)
            .where(SwapOffer.proposer_id == caller.id)
            .options(selectinload(SwapOffer.listing))
            .order_by(SwapOffer.created_at.desc())
        )
        as_owner_stmt = (
            select(SwapOffer)
            .join(SwapOffer.listing)
            .where(Listing.owner_id == caller.id)
            .options(selectinload(SwapOffer.listing))
            .order_by(SwapOffer.created_at.desc())
        )
        try:
            as_proposer = (await self.db.execute(as_proposer_stmt)).scalars().all()
            as_owner = (await self.db.execute(as_owner_stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise self._wrap(e, "list_for_caller")

        return CallerOffersResponse(
            as_proposer=self._with_listing(as_proposer),
            as_owner=self._with_listing(as_owner),
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _with_listing(offers) -> List[OfferWithListing]:
        return [OfferWithListing.model_validate(offer) for offer in offers]

    @staticmethod
    def _wrap(error: SQLAlchemyError, operation: str, **ids: uuid.UUID) -> InternalError:
        logger.error("Database error in %s: %s", operation, str(error), exc_info=True)
        context = {"operation": operation, "error_type": type(error).__name__}
        context.update({name: str(value) for name, value in ids.items()})
        return InternalError(context=context)
