"""
SwapCycle Backend — Rate Limiter State Tests
==============================================

What:  RateLimitMiddleware wrapped around a bare Starlette app, so its
       per-IP bookkeeping can be inspected directly.

What we test:
    ✅ IPs whose window has expired are forgotten on the next sweep
    ✅ An active IP keeps only timestamps inside the window
    ✅ Paths outside the limited prefixes leave no state behind
"""

import time

import pytest
from httpx import AsyncClient, ASGITransport
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from swapcycle.middleware.rate_limit import RateLimitMiddleware


async def ok(request):
    return PlainTextResponse("ok")


@pytest.fixture
def limiter():
    inner = Starlette(
        routes=[
            Route("/api/auth/login", ok, methods=["POST"]),
            Route("/api/listings", ok),
        ]
    )
    return RateLimitMiddleware(inner, requests=3, window=60)


async def send(limiter, method, path):
    async with AsyncClient(transport=ASGITransport(app=limiter), base_url="http://test") as client:
        return await client.request(method, path)


class TestRateLimitState:
    @pytest.mark.asyncio
    async def test_quiet_ips_are_forgotten(self, limiter):
        limiter._requests["10.0.0.1"] = [time.time() - 600]
        limiter._requests["10.0.0.2"] = []

        response = await send(limiter, "POST", "/api/auth/login")

        assert response.status_code == 200
        assert "10.0.0.1" not in limiter._requests
        assert "10.0.0.2" not in limiter._requests
        assert len(limiter._requests["127.0.0.1"]) == 1

    @pytest.mark.asyncio
    async def test_expired_timestamps_do_not_count(self, limiter):
        limiter._requests["127.0.0.1"] = [time.time() - 600] * 3
        limiter._last_sweep = time.time()

        response = await send(limiter, "POST", "/api/auth/login")

        assert response.status_code == 200
        assert len(limiter._requests["127.0.0.1"]) == 1

    @pytest.mark.asyncio
    async def test_limit_applies_within_window(self, limiter):
        statuses = [(await send(limiter, "POST", "/api/auth/login")).status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]
        assert len(limiter._requests["127.0.0.1"]) == 3

    @pytest.mark.asyncio
    async def test_unlimited_paths_leave_no_state(self, limiter):
        response = await send(limiter, "GET", "/api/listings")

        assert response.status_code == 200
        assert limiter._requests == {}
