"""
SwapCycle Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/signup and POST /api/auth/login.
How:   Thin handlers; IdentityService does validation, hashing and signing.
       Both paths sit behind the auth rate limiter (middleware/rate_limit.py).
"""

from fastapi import APIRouter, Depends

from swapcycle.routes.dependencies import get_identity_service
from swapcycle.schemas.auth import AuthResponse, LoginRequest, SignupRequest
from swapcycle.schemas.common import ErrorResponse
from swapcycle.services.identity_service import IdentityService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields or email already in use", "model": ErrorResponse},
        429: {"description": "Too many auth attempts", "model": ErrorResponse},
    },
    summary="Register an account",
)
async def signup(
    body: SignupRequest,
    identity_service: IdentityService = Depends(get_identity_service),
) -> AuthResponse:
    return await identity_service.register(body.email, body.password, body.name)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing email or password", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        429: {"description": "Too many auth attempts", "model": ErrorResponse},
    },
    summary="Exchange email and password for a bearer credential",
)
async def login(
    body: LoginRequest,
    identity_service: IdentityService = Depends(get_identity_service),
) -> AuthResponse:
    return await identity_service.login(body.email, body.password)
