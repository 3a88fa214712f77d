"""
SwapCycle Backend — Listing Route Handlers
============================================

What:  Listing create/browse/fetch/update/delete under /api/listings.
Who:   Called by the marketplace frontend.

Guarding:
    GET routes are public (no Access Guard). POST, PATCH and DELETE require a
    bearer credential; ListingService then checks ownership.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from swapcycle.routes.dependencies import get_listing_service, require_identity
from swapcycle.schemas.auth import Identity
from swapcycle.schemas.common import ErrorResponse, SuccessResponse
from swapcycle.schemas.listing import (
    ListingCreate,
    ListingDetail,
    ListingResponse,
    ListingSummary,
    ListingUpdate,
)
from swapcycle.services.listing_service import ListingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/listings", tags=["Listings"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid bearer credential", "model": ErrorResponse},
}
_OWNER_ERRORS = {
    **_AUTH_ERRORS,
    403: {"description": "Caller does not own this listing", "model": ErrorResponse},
    404: {"description": "Listing not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=ListingResponse,
    responses={400: {"description": "Title required", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Publish a listing",
)
async def create_listing(
    body: ListingCreate,
    caller: Identity = Depends(require_identity),
    listing_service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    return await listing_service.create_listing(caller, body)


@router.get(
    "",
    response_model=List[ListingSummary],
    summary="Browse active listings",
    description=(
        "Returns active listings, newest first. `q` matches title or description "
        "case-insensitively; `category` must match exactly."
    ),
)
async def list_listings(
    response: Response,
    q: Optional[str] = Query(default=None, description="Substring to search in title/description"),
    category: Optional[str] = Query(default=None, description="Exact category filter"),
    listing_service: ListingService = Depends(get_listing_service),
) -> List[ListingSummary]:
    listings = await listing_service.list_listings(query=q, category=category)
    response.headers["X-Total-Count"] = str(len(listings))
    return listings


@router.get(
    "/{listing_id}",
    response_model=ListingDetail,
    responses={404: {"description": "Listing not found", "model": ErrorResponse}},
    summary="Fetch a listing with its owner, images and offers",
)
async def get_listing(
    listing_id: uuid.UUID,
    listing_service: ListingService = Depends(get_listing_service),
) -> ListingDetail:
    return await listing_service.get_listing(listing_id)


@router.patch(
    "/{listing_id}",
    response_model=ListingResponse,
    responses=_OWNER_ERRORS,
    summary="Edit a listing (owner only)",
)
async def update_listing(
    listing_id: uuid.UUID,
    body: ListingUpdate,
    caller: Identity = Depends(require_identity),
    listing_service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    return await listing_service.update_listing(caller, listing_id, body)


@router.delete(
    "/{listing_id}",
    response_model=SuccessResponse,
    responses=_OWNER_ERRORS,
    summary="Delete a listing with its images and offers (owner only)",
)
async def delete_listing(
    listing_id: uuid.UUID,
    caller: Identity = Depends(require_identity),
    listing_service: ListingService = Depends(get_listing_service),
) -> SuccessResponse:
    await listing_service.delete_listing(caller, listing_id)
    return SuccessResponse()
