"""
SwapCycle Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance with
       its settings and store client attached to `app.state`.
Who:   Called by uvicorn to start the server (uvicorn swapcycle.main:app) and by
       the test suite with explicit Settings and Database objects.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────────────┐ ┌─────────────────┐  │
    │  │  Req ID  │→│ Auth Rate Limit  │→│  Logging        │  │
    │  └──────────┘ └──────────────────┘ └─────────────────┘  │
    │                                                         │
    │  Routes:                                                │
    │  ┌────────────┐ ┌──────────────┐ ┌────────────┐ ┌─────┐ │
    │  │ /api/auth  │ │ /api/listings│ │ /api/offers│ │ /   │ │
    │  └────────────┘ └──────────────┘ └────────────┘ └─────┘ │
    │                                                         │
    │  Exception Handlers:                                    │
    │  ┌───────────────────────────────────────────────────┐  │
    │  │ SwapCycleError→status_code │ Request schema→400  │  │
    │  └───────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (production refuses insecure fallbacks)
    3. Warn once per insecure fallback in use
    4. Optionally create missing tables (DB_CREATE_TABLES)

    Shutdown:
    1. Dispose the store client (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from swapcycle import __version__
from swapcycle.config import Settings, settings as default_settings
from swapcycle.database import Database
from swapcycle.exceptions import AuthError, InternalError, SwapCycleError
from swapcycle.middleware.logging import RequestLoggingMiddleware
from swapcycle.middleware.rate_limit import RateLimitMiddleware
from swapcycle.middleware.request_id import RequestIDMiddleware, request_id_var
from swapcycle.routes import auth, health, listings, offers

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(app_settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level comes from LOG_LEVEL; third-party loggers that log every
    operation are raised to WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration checks, optional table creation.
    Shutdown: dispose the store client.

    A production deployment with a missing JWT_SECRET or DATABASE_URL fails
    here, before the first request is accepted.
    """
    app_settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings)
    logger.info("=" * 60)
    logger.info("SwapCycle Backend starting up (env=%s)...", app_settings.app_env)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    for name in app_settings.insecure_fallbacks():
        logger.warning(
            "%s is not set; using an INSECURE development fallback. "
            "Never run like this in production.",
            name,
        )

    if app_settings.db_create_tables:
        await database.create_all()
        logger.info("Database tables ensured from ORM metadata")

    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SwapCycle Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════
_HTTP_ERROR_CODES = {404: "not_found", 405: "method_not_allowed"}


def _error_body(error: str, message: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy (FastAPI picks the most specific class):
        InternalError          → 500, generic message, context logged only
        AuthError              → 401 + WWW-Authenticate: Bearer
        SwapCycleError (base)  → exc.status_code / exc.error_code, context as details
        RequestValidationError → 400 validation_error (request schema failures)
        HTTPException          → its own status; 404 not_found, 405 method_not_allowed
        Exception (fallback)   → 500 internal_server_error

    Security: handlers never expose stack traces, SQL or internal ids for
    server-side failures. Those details are logged.
    """

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError):
        rid = request_id_var.get("")
        logger.error("[%s] Internal error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message),
        )

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(SwapCycleError)
    async def handle_swapcycle_error(request: Request, exc: SwapCycleError):
        """Client-fixable failure: the message says what to change."""
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message, exc.context or None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed body, query or path parameter (e.g. a non-UUID id)."""
        errors = jsonable_encoder(exc.errors())
        message = "Validation failed"
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, {"errors": errors}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Routing failures: unknown path (404) or unsupported method (405)."""
        error = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(error, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for truly unexpected errors.

        Stack trace is logged server-side ONLY (never in response).
        """
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration to run with; defaults to the env-loaded singleton
        database: store client to inject; defaults to one built from settings.
                  Construction performs no I/O, so importing this module is safe.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app_settings = settings or default_settings

    app = FastAPI(
        title=app_settings.app_name,
        description=(
            "Peer-to-peer item swap marketplace: list items, browse listings, "
            "propose swaps and let listing owners accept, reject or complete them."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.database = database or Database.from_settings(app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → RateLimit → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
        ],
    )

    # Don't compress small responses (overhead > savings)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        RateLimitMiddleware,
        requests=app_settings.auth_rate_limit_requests,
        window=app_settings.auth_rate_limit_window,
        path_prefixes=("/api/auth/",),
    )

    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(listings.router)
    app.include_router(offers.router)
    app.include_router(health.router)

    return app


# uvicorn expects `swapcycle.main:app` to be importable
app = create_app()
