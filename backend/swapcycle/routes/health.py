"""
SwapCycle Backend — Health Check & Banner Routes
==================================================

What:  GET /health for container and load-balancer probes, GET / as a banner.
How:   The health check runs `SELECT 1` through the injected store client.
       The only critical dependency is the store: if it is unreachable the
       service cannot serve any route, so the response is 503 `unhealthy`.
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from swapcycle import __version__
from swapcycle.schemas.common import BannerResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=BannerResponse, include_in_schema=False)
async def banner(request: Request) -> BannerResponse:
    return BannerResponse(message=request.app.state.settings.app_name)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
