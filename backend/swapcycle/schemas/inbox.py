"""
SwapCycle Backend — Offer Inbox Schemas
=========================================

What:  Response of GET /api/offers: the caller's offers from both sides of
       the swap, each with a brief projection of its listing.
"""

from typing import List

from pydantic import BaseModel, Field

from swapcycle.schemas.listing import ListingBrief
from swapcycle.schemas.offer import OfferResponse


class OfferWithListing(OfferResponse):
    listing: ListingBrief


class CallerOffersResponse(BaseModel):
    """
    Note:  The two lists come from independent queries and are not
           deduplicated against each other.
    """
    as_proposer: List[OfferWithListing] = Field(default_factory=list)
    as_owner: List[OfferWithListing] = Field(default_factory=list)
