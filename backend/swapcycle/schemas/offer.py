"""
SwapCycle Backend — Swap Offer Request/Response Schemas
=========================================================

What:  API contracts for proposing and acting on swap offers.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from swapcycle.models.offer import OfferAction, OfferStatus


class OfferCreate(BaseModel):
    offered_text: Optional[str] = Field(
        default=None,
        description="What the proposer offers in exchange",
    )


class OfferActionRequest(BaseModel):
    """
    Body of PATCH /api/offers/{offer_id}.

    `action` stays a plain string here; OfferService.act parses it into an
    OfferAction after the existence and ownership checks, so a stranger probing
    an offer id gets 404/403 rather than a schema error.
    """
    action: str = Field(
        description="One of: " + ", ".join(a.value for a in OfferAction),
        examples=["accept"],
    )


class OfferResponse(BaseModel):
    id: uuid.UUID
    listing_id: uuid.UUID
    proposer_id: uuid.UUID
    offered_text: Optional[str] = None
    status: OfferStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
