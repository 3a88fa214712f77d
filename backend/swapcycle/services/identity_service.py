"""
SwapCycle Backend — Identity Service
======================================

What:  Account registration and login; issues bearer credentials.
Who:   Called by the /api/auth route handlers.

Flow (register):
    validate input → bcrypt hash (threadpool) → INSERT user → flush
    → UNIQUE(email) violation? ConflictError : issue credential

Flow (login):
    validate input → SELECT user by email → bcrypt verify (threadpool)
    → either check fails? AuthError("Invalid credentials") : issue credential

Security Notes:
    - The plaintext password never leaves this module; only the hash is stored.
    - Unknown email and wrong password raise the same AuthError message, so a
      response cannot be used to probe which emails are registered.
    - bcrypt work runs in Starlette's threadpool so hashing does not stall the
      event loop for other requests.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from swapcycle.config import Settings
from swapcycle.exceptions import (
    AuthError,
    ConflictError,
    InternalError,
    ValidationError,
)
from swapcycle.models.user import User
from swapcycle.schemas.auth import AuthResponse, UserPublic
from swapcycle.security import (
    BCRYPT_MAX_PASSWORD_BYTES,
    hash_password,
    issue_credential,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class IdentityService:
    """
    Registers accounts and verifies credentials.

    Constructed per request with the request's session and the app settings
    (signing secret, credential lifetime, bcrypt cost).
    """

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def register(self, email: str | None, password: str | None, name: str | None = None) -> AuthResponse:
        """
        Create an account and return a credential for it.

        Raises:
            ValidationError: email or password missing, password over 72 bytes
            ConflictError:   email already registered (→ 400)
            InternalError:   store failure
        """
        email, password = self._require_email_and_password(email, password)
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes",
                field="password",
            )

        password_hash = await run_in_threadpool(
            hash_password, password, self.settings.bcrypt_rounds
        )

        user = User(email=email, password_hash=password_hash, name=name)
        try:
            self.db.add(user)
            await self.db.flush()
        except IntegrityError:
            # UNIQUE(email) is the only constraint a fresh user row can violate
            logger.info("Signup rejected: email already registered")
            raise ConflictError(message="Email already in use", context={"field": "email"})
        except SQLAlchemyError as e:
            logger.error("Database error during signup: %s", str(e), exc_info=True)
            raise InternalError(context={"operation": "register", "error_type": type(e).__name__})

        logger.info("User registered: %s", user.id)
        return self._issue(user)

    async def login(self, email: str | None, password: str | None) -> AuthResponse:
        """
        Verify an email/password pair and return a fresh credential.

        Raises:
            ValidationError: email or password missing
            AuthError:       unknown email or wrong password (same message)
            InternalError:   store failure
        """
        email, password = self._require_email_and_password(email, password)

        try:
            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise InternalError(context={"operation": "login", "error_type": type(e).__name__})

        if user is None:
            logger.info("Login failed: no such account")
            raise AuthError(INVALID_CREDENTIALS)

        ok = await run_in_threadpool(verify_password, password, user.password_hash)
        if not ok:
            logger.info("Login failed for user %s: password mismatch", user.id)
            raise AuthError(INVALID_CREDENTIALS)

        return self._issue(user)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _require_email_and_password(email: str | None, password: str | None) -> tuple[str, str]:
        email = (email or "").strip()
        if not email or not password or not password.strip():
            raise ValidationError(message="Email and password required")
        return email, password

    def _issue(self, user: User) -> AuthResponse:
        token = issue_credential(
            str(user.id),
            user.email,
            self.settings.signing_secret,
            ttl_days=self.settings.credential_ttl_days,
            algorithm=self.settings.jwt_algorithm,
        )
        return AuthResponse(token=token, user=UserPublic.model_validate(user))
