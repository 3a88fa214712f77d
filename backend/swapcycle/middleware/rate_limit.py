"""
SwapCycle Backend — Auth Rate Limiting Middleware
===================================================

What:  Per-IP sliding window limit on the credential endpoints (/api/auth/*).
Why:   Signup and login are the only routes that accept a password, so they
       are where credential stuffing and bcrypt-driven CPU exhaustion land.
       Browse and guarded routes are not throttled.

Algorithm: Sliding Window Counter
    1. Each IP gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429 and Retry-After
    4. Otherwise record the current timestamp and pass through
    5. Once per window, drop every IP whose timestamps have all expired

Limitation:
    State is in-process. Behind several workers each worker counts on its own,
    so the effective limit is `requests × workers`.
"""

import logging
import time
from typing import Dict, Iterable, List, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from swapcycle.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter for selected path prefixes.

    Args:
        requests:      max requests per IP within the window
        window:        window length in seconds
        path_prefixes: only paths starting with one of these are limited
    """

    def __init__(
        self,
        app,
        requests: int = 20,
        window: int = 300,
        path_prefixes: Iterable[str] = ("/api/auth/",),
    ):
        super().__init__(app)
        self.max_requests = requests
        self.window = window
        self.path_prefixes: Tuple[str, ...] = tuple(path_prefixes)
        self._requests: Dict[str, List[float]] = {}
        self._last_sweep = 0.0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(self.path_prefixes):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        # Once per window, forget IPs that went quiet
        if now - self._last_sweep >= self.window:
            self._cleanup_inactive_ips(window_start)
            self._last_sweep = now

        timestamps = [ts for ts in self._requests.get(client_ip, ()) if ts > window_start]

        if len(timestamps) >= self.max_requests:
            self._requests[client_ip] = timestamps
            retry_after = int(timestamps[0] + self.window - now) + 1
            logger.warning(
                "Auth rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                self.window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._requests[client_ip] = timestamps

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
