# Importing this package registers every model with Base.metadata
from swapcycle.models.user import User
from swapcycle.models.listing import Listing, ListingImage
from swapcycle.models.offer import OfferAction, OfferStatus, SwapOffer
from swapcycle.models.rating import Rating

__all__ = [
    "User",
    "Listing",
    "ListingImage",
    "OfferAction",
    "OfferStatus",
    "SwapOffer",
    "Rating",
]
