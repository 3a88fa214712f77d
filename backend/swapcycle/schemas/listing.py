"""
SwapCycle Backend — Listing Request/Response Schemas
======================================================

What:  API contracts for listing create, browse, fetch, and update.

Projection rules:
    - OwnerSummary is the only shape in which a user is embedded in a listing:
      id, email, name, avatar_url. The password hash has no field anywhere.
    - ListingResponse: create/update result (images, no owner, no offers)
    - ListingSummary:  browse item (images + owner)
    - ListingDetail:   fetch-by-id (images + owner + offers)
    - ListingBrief:    embedded in offers (no nested collections)
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from swapcycle.schemas.offer import OfferResponse


class ListingCreate(BaseModel):
    """
    What:  Body of POST /api/listings.
    Why title is Optional: ListingService rejects a missing/blank title with
    the application's ValidationError.
    """
    title: Optional[str] = Field(default=None, max_length=200, description="Required, non-empty")
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    condition: Optional[str] = Field(default=None, max_length=50)
    images: List[Annotated[str, Field(max_length=2048)]] = Field(
        default_factory=list,
        description="Ordered image URLs; position in the array becomes the ordinal",
    )


class ListingUpdate(BaseModel):
    """
    What:  Body of PATCH /api/listings/{id}.
    How:   Only fields present in the request body are applied
           (model_dump(exclude_unset=True)).
    """
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    condition: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None


class ListingImageResponse(BaseModel):
    id: uuid.UUID
    url: str
    ordinal: int

    model_config = {"from_attributes": True}


class OwnerSummary(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class ListingBrief(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    condition: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ListingResponse(ListingBrief):
    images: List[ListingImageResponse] = Field(default_factory=list)


class ListingSummary(ListingResponse):
    owner: OwnerSummary


class ListingDetail(ListingSummary):
    offers: List[OfferResponse] = Field(default_factory=list)
