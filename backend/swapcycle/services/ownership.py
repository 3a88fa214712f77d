"""
SwapCycle Backend — Ownership Check
=====================================

What:  The single authorization rule shared by ListingService and OfferService:
       only the owner of a listing may mutate it or act on its offers.
"""

import uuid

from swapcycle.exceptions import ForbiddenError
from swapcycle.schemas.auth import Identity


def assert_owner_or_forbidden(
    caller: Identity,
    resource_owner_id: uuid.UUID,
    resource: str = "resource",
    message: str = "Forbidden",
) -> None:
    """Raise ForbiddenError unless `caller` owns the resource."""
    if caller.id != resource_owner_id:
        raise ForbiddenError(message=message, context={"resource": resource})
