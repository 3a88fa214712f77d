"""
SwapCycle Backend — Custom Exception Hierarchy
=================================================

What:  The closed set of failures a service operation may raise.
Why:   Each class carries its own machine-readable `error_code` and HTTP
       `status_code`, so the transport boundary maps kind → response without
       string matching, and services stay free of HTTP objects.
How:   Services raise these; handlers registered in main.py turn them into
       JSON error responses. `context` holds debugging detail: it is returned
       as `details` for client-fixable errors and only logged for InternalError.

Exception Hierarchy:
    SwapCycleError (base)
    ├── ValidationError   → 400 Bad Request (malformed or missing input)
    ├── AuthError         → 401 Unauthorized (bad/missing/expired credential, bad login)
    ├── ForbiddenError    → 403 Forbidden (authenticated, not the owner)
    ├── NotFoundError     → 404 Not Found
    ├── ConflictError     → 400 Bad Request (uniqueness violation)
    └── InternalError     → 500 Internal Server Error (store/runtime failure)

Why ConflictError is 400 and not 409:
    Existing clients treat "Email already in use" as a form error alongside
    the other signup validation messages, and expect 400 for it.
"""

from typing import Any, Dict, Optional


class SwapCycleError(Exception):
    """
    Base exception for all SwapCycle application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    error_code: str = "server_error"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SwapCycleError):
    """
    Raised when client input fails validation.

    When:    Missing email/password, empty listing title, offer on own listing,
             unknown offer action, illegal offer transition.
    """

    error_code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthError(SwapCycleError):
    """
    Raised when the caller cannot be authenticated.

    Messages are deliberately coarse ("Invalid credentials", "Invalid token")
    so a response never reveals which check failed.
    """

    error_code = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message)


class ForbiddenError(SwapCycleError):
    """Raised when an authenticated caller does not own the target entity."""

    error_code = "forbidden"
    status_code = 403

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SwapCycleError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception.
    """

    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(SwapCycleError):
    """Raised when a write violates a uniqueness constraint in the store."""

    error_code = "conflict"
    status_code = 400

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InternalError(SwapCycleError):
    """
    Raised when the store or runtime fails unexpectedly.

    Security Note:
        The message returned to the client is always generic. Detail (SQL error
        type, entity ids) goes into `context`, which is logged server-side only.
    """

    error_code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An internal error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
