"""
SwapCycle Backend — Offer Route Handlers
==========================================

What:  Propose, act on, and list swap offers under /api/offers.
Guarding: every route requires a bearer credential.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from swapcycle.routes.dependencies import get_offer_service, require_identity
from swapcycle.schemas.auth import Identity
from swapcycle.schemas.common import ErrorResponse
from swapcycle.schemas.inbox import CallerOffersResponse
from swapcycle.schemas.offer import OfferActionRequest, OfferCreate, OfferResponse
from swapcycle.services.offer_service import OfferService

router = APIRouter(prefix="/api/offers", tags=["Offers"])


@router.post(
    "/{listing_id}",
    status_code=201,
    response_model=OfferResponse,
    responses={
        400: {"description": "Cannot offer on your own listing", "model": ErrorResponse},
        401: {"description": "Missing or invalid bearer credential", "model": ErrorResponse},
        404: {"description": "Listing not found", "model": ErrorResponse},
    },
    summary="Propose a swap for a listing",
)
async def propose_offer(
    listing_id: uuid.UUID,
    body: Optional[OfferCreate] = None,
    caller: Identity = Depends(require_identity),
    offer_service: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    offered_text = body.offered_text if body else None
    return await offer_service.propose(caller, listing_id, offered_text)


@router.patch(
    "/{offer_id}",
    response_model=OfferResponse,
    responses={
        400: {"description": "Unknown action or illegal transition", "model": ErrorResponse},
        401: {"description": "Missing or invalid bearer credential", "model": ErrorResponse},
        403: {"description": "Only the listing owner can act", "model": ErrorResponse},
        404: {"description": "Offer not found", "model": ErrorResponse},
    },
    summary="Accept, reject or complete an offer (listing owner only)",
)
async def act_on_offer(
    offer_id: uuid.UUID,
    body: OfferActionRequest,
    caller: Identity = Depends(require_identity),
    offer_service: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    return await offer_service.act(caller, offer_id, body.action)


@router.get(
    "",
    response_model=CallerOffersResponse,
    responses={401: {"description": "Missing or invalid bearer credential", "model": ErrorResponse}},
    summary="Offers the caller made and offers on the caller's listings",
)
async def list_my_offers(
    caller: Identity = Depends(require_identity),
    offer_service: OfferService = Depends(get_offer_service),
) -> CallerOffersResponse:
    return await offer_service.list_for_caller(caller)
