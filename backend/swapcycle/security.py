"""
SwapCycle Backend — Password Hashing & Credential Signing
===========================================================

What:  Thin wrappers over the two cryptographic collaborators:
       bcrypt (one-way password hash) and python-jose (HS256 JWT).
Why:   Services depend on these four functions, not on the libraries, so the
       primitives can be swapped without touching business logic.

Credential format (opaque to clients):
    HS256 JWT with claims {id, email, iat, exp}. Verification needs only the
    signing secret; no store round-trip.

bcrypt limits:
    bcrypt only reads the first 72 bytes of its input and current releases
    raise on longer input. IdentityService rejects such passwords up front.
"""

import time
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

BCRYPT_MAX_PASSWORD_BYTES = 72

SECONDS_PER_DAY = 24 * 60 * 60


class CredentialError(Exception):
    """The token is not a valid, unexpired credential signed with our secret."""


def hash_password(raw_password: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash. CPU-bound: call through the threadpool."""
    return bcrypt.hashpw(raw_password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode(
        "utf-8"
    )


def verify_password(raw_password: str, password_hash: str) -> bool:
    """Constant-time check of a raw password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or oversize input: treat as a mismatch
        return False


def issue_credential(
    user_id: str,
    email: str,
    secret: str,
    *,
    ttl_days: int = 30,
    algorithm: str = "HS256",
    now: Optional[int] = None,
) -> str:
    issued_at = int(now if now is not None else time.time())
    claims = {
        "id": user_id,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + ttl_days * SECONDS_PER_DAY,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_credential(token: str, secret: str, *, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Verify signature and expiry, then return the claims.

    Raises:
        CredentialError: bad signature, expired, malformed, or missing id/email
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        raise CredentialError(str(e)) from e

    if not isinstance(claims.get("id"), str) or not isinstance(claims.get("email"), str):
        raise CredentialError("Credential is missing identity claims")
    return claims
