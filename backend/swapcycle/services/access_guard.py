"""
SwapCycle Backend — Access Guard
==================================

What:  Resolves the bearer credential on a request to the caller's Identity.
Why:   Every mutating listing/offer operation needs an authenticated caller;
       the guard rejects the request before any service or store work happens.
How:   `AccessGuard.authenticate()` inspects the raw headers. The FastAPI
       dependency `require_identity` (routes/dependencies.py) wraps it and
       attaches the result to `request.state.identity`.

Failure messages (all AuthError → 401):
    "Missing Authorization"  header absent or empty
    "Bad Authorization"      not exactly "Bearer <token>"
    "Invalid token"          bad signature, expired, or malformed claims
"""

import logging
import uuid
from typing import Mapping

from swapcycle.exceptions import AuthError
from swapcycle.schemas.auth import Identity
from swapcycle.security import CredentialError, decode_credential

logger = logging.getLogger(__name__)


class AccessGuard:
    """Stateless verifier; holds only the signing secret and algorithm."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm

    def authenticate(self, headers: Mapping[str, str]) -> Identity:
        # Starlette Headers are case-insensitive; plain dicts from tests may not be
        auth = headers.get("authorization") or headers.get("Authorization")
        if not auth:
            raise AuthError("Missing Authorization")

        parts = auth.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
            raise AuthError("Bad Authorization")

        try:
            claims = decode_credential(parts[1], self._secret, algorithm=self._algorithm)
            return Identity(id=uuid.UUID(claims["id"]), email=claims["email"])
        except (CredentialError, ValueError) as e:
            logger.info("Rejected bearer credential: %s", e)
            raise AuthError("Invalid token")
