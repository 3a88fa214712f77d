"""
SwapCycle Backend — Identity Schemas
======================================

What:  Request/response contracts for signup and login, and the resolved
       caller identity the Access Guard hands to services.

Why email/password are Optional in the request models:
    A missing field must surface as the application's ValidationError (400,
    "Email and password required"), raised by IdentityService, rather than as a
    field-level schema error.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=320, description="Unique login email")
    password: Optional[str] = Field(default=None, description="Raw password (max 72 bytes)")
    name: Optional[str] = Field(default=None, max_length=120, description="Display name")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(BaseModel):
    """The account projection returned to its own holder after signup/login."""
    id: uuid.UUID
    email: str
    name: Optional[str] = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """
    What:  Bearer credential plus the account it was issued for.
    How:   Clients send the token back as `Authorization: Bearer <token>`.
    """
    token: str = Field(description="Signed bearer credential (HS256 JWT, 30-day validity)")
    user: UserPublic


class Identity(BaseModel):
    """Authenticated caller resolved from a verified credential."""
    id: uuid.UUID
    email: str

    model_config = ConfigDict(frozen=True)
