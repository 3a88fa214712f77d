"""
SwapCycle Backend — Route Dependencies
========================================

What:  FastAPI `Depends()` providers that assemble services for a request.
How:   Settings and the store client live on `app.state` (set by create_app);
       each provider builds a service around the request's AsyncSession,
       which commits when the endpoint returns (before the response is sent).
       Tests replace any of these through `app.dependency_overrides`.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from swapcycle.config import Settings
from swapcycle.database import get_db_session
from swapcycle.schemas.auth import Identity
from swapcycle.services.access_guard import AccessGuard
from swapcycle.services.identity_service import IdentityService
from swapcycle.services.listing_service import ListingService
from swapcycle.services.offer_service import OfferService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_access_guard(settings: Settings = Depends(get_settings)) -> AccessGuard:
    return AccessGuard(settings.signing_secret, algorithm=settings.jwt_algorithm)


def require_identity(
    request: Request,
    guard: AccessGuard = Depends(get_access_guard),
) -> Identity:
    """
    Access Guard as a dependency: reject the request with AuthError (401)
    unless it carries a valid bearer credential.

    The resolved identity is also stored on request.state for middleware.
    """
    identity = guard.authenticate(request.headers)
    request.state.identity = identity
    return identity


def get_identity_service(
    db: AsyncSession = Depends(get_db_session, scope="function"),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(db, settings)


def get_listing_service(
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> ListingService:
    return ListingService(db)


def get_offer_service(
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> OfferService:
    return OfferService(db)
