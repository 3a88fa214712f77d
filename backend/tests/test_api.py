"""
SwapCycle Backend — API Endpoint Tests
========================================

What:  End-to-end HTTP tests through the full middleware and handler stack.
How:   httpx.AsyncClient over ASGITransport; each test gets a fresh app and
       SQLite store (see conftest.py).

What we test:
    ✅ The marketplace scenario over HTTP, with status codes
    ✅ Error kind → status mapping and the error body shape (incl. 404/405)
    ✅ A failed commit is a 500, never a success
    ✅ Over-long fields are rejected as 400 before reaching the store
    ✅ Access Guard responses (401 + WWW-Authenticate)
    ✅ Auth rate limiting (429 + Retry-After), scoped to /api/auth/*
    ✅ Health check and banner, request id propagation
"""

import uuid

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from swapcycle.exceptions import InternalError
from swapcycle.main import create_app
from swapcycle.routes.dependencies import get_listing_service


class TestMarketplaceScenario:
    @pytest.mark.asyncio
    async def test_swap_from_listing_to_completion(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        bob = await auth_headers("b@example.com")

        created = await test_client.post(
            "/api/listings",
            json={"title": "Bike", "category": "sports", "images": ["https://img/bike.jpg"]},
            headers=alice,
        )
        assert created.status_code == 201
        listing = created.json()
        assert listing["is_active"] is True
        assert listing["images"][0]["url"] == "https://img/bike.jpg"

        proposed = await test_client.post(
            f"/api/offers/{listing['id']}",
            json={"offered_text": "trade for skateboard"},
            headers=bob,
        )
        assert proposed.status_code == 201
        offer = proposed.json()
        assert offer["status"] == "pending"

        accepted = await test_client.patch(
            f"/api/offers/{offer['id']}", json={"action": "accept"}, headers=alice
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"

        forbidden = await test_client.patch(
            f"/api/offers/{offer['id']}", json={"action": "reject"}, headers=bob
        )
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "forbidden"

        completed = await test_client.patch(
            f"/api/offers/{offer['id']}", json={"action": "complete"}, headers=alice
        )
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["updated_at"] != accepted.json()["updated_at"]

        detail = await test_client.get(f"/api/listings/{listing['id']}")
        assert detail.status_code == 200
        assert [o["status"] for o in detail.json()["offers"]] == ["completed"]
        assert "password_hash" not in detail.json()["owner"]

        inbox = await test_client.get("/api/offers", headers=bob)
        assert inbox.status_code == 200
        assert [o["id"] for o in inbox.json()["as_proposer"]] == [offer["id"]]
        assert inbox.json()["as_proposer"][0]["listing"]["title"] == "Bike"

    @pytest.mark.asyncio
    async def test_browse_is_public_and_filtered(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        for title in ("Mountain Bike", "Skateboard"):
            await test_client.post("/api/listings", json={"title": title}, headers=alice)

        response = await test_client.get("/api/listings", params={"q": "bike"})

        assert response.status_code == 200
        assert [item["title"] for item in response.json()] == ["Mountain Bike"]
        assert response.headers["x-total-count"] == "1"

    @pytest.mark.asyncio
    async def test_propose_without_body(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        bob = await auth_headers("b@example.com")
        listing = (await test_client.post("/api/listings", json={"title": "Lamp"}, headers=alice)).json()

        response = await test_client.post(f"/api/offers/{listing['id']}", headers=bob)

        assert response.status_code == 201
        assert response.json()["offered_text"] is None

    @pytest.mark.asyncio
    async def test_delete_listing(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        bob = await auth_headers("b@example.com")
        listing = (await test_client.post("/api/listings", json={"title": "Lamp"}, headers=alice)).json()
        await test_client.post(f"/api/offers/{listing['id']}", json={"offered_text": "x"}, headers=bob)

        not_owner = await test_client.delete(f"/api/listings/{listing['id']}", headers=bob)
        deleted = await test_client.delete(f"/api/listings/{listing['id']}", headers=alice)
        gone = await test_client.get(f"/api/listings/{listing['id']}")
        bob_inbox = await test_client.get("/api/offers", headers=bob)

        assert not_owner.status_code == 403
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True}
        assert gone.status_code == 404
        assert bob_inbox.json()["as_proposer"] == []

    @pytest.mark.asyncio
    async def test_update_listing(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        listing = (await test_client.post("/api/listings", json={"title": "Lamp"}, headers=alice)).json()

        response = await test_client.patch(
            f"/api/listings/{listing['id']}", json={"is_active": False}, headers=alice
        )
        browse = await test_client.get("/api/listings")

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["title"] == "Lamp"
        assert browse.json() == []


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_signup_and_login(self, test_client):
        signup = await test_client.post(
            "/api/auth/signup",
            json={"email": "a@example.com", "password": "pw123456", "name": "Alice"},
        )
        login = await test_client.post(
            "/api/auth/login", json={"email": "a@example.com", "password": "pw123456"}
        )

        assert signup.status_code == 201
        assert signup.json()["user"] == {
            "id": signup.json()["user"]["id"],
            "email": "a@example.com",
            "name": "Alice",
        }
        assert login.status_code == 200
        assert login.json()["user"]["id"] == signup.json()["user"]["id"]

    @pytest.mark.asyncio
    async def test_duplicate_email_is_400(self, test_client, auth_headers):
        await auth_headers("a@example.com")

        response = await test_client.post(
            "/api/auth/signup", json={"email": "a@example.com", "password": "other-pw"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "Email already in use"

    @pytest.mark.asyncio
    async def test_missing_fields_is_400(self, test_client):
        response = await test_client.post("/api/auth/signup", json={"email": "a@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"] == "Email and password required"

    @pytest.mark.asyncio
    async def test_bad_login_is_401_with_challenge(self, test_client, auth_headers):
        await auth_headers("a@example.com")

        wrong = await test_client.post(
            "/api/auth/login", json={"email": "a@example.com", "password": "nope"}
        )
        unknown = await test_client.post(
            "/api/auth/login", json={"email": "z@example.com", "password": "nope"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid credentials"
        assert wrong.headers["www-authenticate"] == "Bearer"


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_guarded_route_without_credential(self, test_client):
        response = await test_client.post("/api/listings", json={"title": "Bike"})

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthorized"
        assert body["message"] == "Missing Authorization"
        assert set(body) == {"error", "message", "details", "request_id"}

    @pytest.mark.asyncio
    async def test_guarded_route_with_bad_token(self, test_client):
        response = await test_client.get(
            "/api/offers", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_unknown_listing_is_404(self, test_client):
        response = await test_client.get(f"/api/listings/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, test_client):
        response = await test_client.get("/api/listings/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_blank_title_is_400(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")

        response = await test_client.post("/api/listings", json={"title": "  "}, headers=alice)

        assert response.status_code == 400
        assert response.json()["message"] == "Title required"

    @pytest.mark.asyncio
    async def test_own_listing_offer_is_400(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        listing = (await test_client.post("/api/listings", json={"title": "Bike"}, headers=alice)).json()

        response = await test_client.post(f"/api/offers/{listing['id']}", headers=alice)

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot offer on your own listing"

    @pytest.mark.asyncio
    async def test_unknown_action_is_400(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        bob = await auth_headers("b@example.com")
        listing = (await test_client.post("/api/listings", json={"title": "Bike"}, headers=alice)).json()
        offer = (await test_client.post(f"/api/offers/{listing['id']}", headers=bob)).json()

        response = await test_client.patch(
            f"/api/offers/{offer['id']}", json={"action": "cancel"}, headers=alice
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_internal_error_is_generic_500(self, app, test_client):
        class FailingListings:
            async def list_listings(self, query=None, category=None):
                raise InternalError(context={"operation": "list_listings", "sql": "SELECT secret"})

        app.dependency_overrides[get_listing_service] = lambda: FailingListings()

        response = await test_client.get("/api/listings")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["details"] is None
        assert "secret" not in response.text

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get(
            f"/api/listings/{uuid.uuid4()}", headers={"X-Request-ID": "trace-123"}
        )

        assert response.headers["x-request-id"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_failed_commit_is_500_and_nothing_is_stored(
        self, test_client, auth_headers, monkeypatch
    ):
        alice = await auth_headers("a@example.com")

        async def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("disk full"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)
        response = await test_client.post("/api/listings", json={"title": "Bike"}, headers=alice)
        monkeypatch.undo()
        browse = await test_client.get("/api/listings")

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
        assert "disk full" not in response.text
        assert browse.json() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"title": "x" * 201},
            {"title": "Bike", "images": ["https://img/" + "x" * 2040]},
        ],
    )
    async def test_fields_longer_than_columns_are_400(self, test_client, auth_headers, body):
        alice = await auth_headers("a@example.com")

        response = await test_client.post("/api/listings", json=body, headers=alice)
        browse = await test_client.get("/api/listings")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert browse.json() == []

    @pytest.mark.asyncio
    async def test_long_title_update_is_400(self, test_client, auth_headers):
        alice = await auth_headers("a@example.com")
        listing = (await test_client.post("/api/listings", json={"title": "x" * 200}, headers=alice)).json()

        response = await test_client.patch(
            f"/api/listings/{listing['id']}", json={"title": "x" * 201}, headers=alice
        )

        assert listing["title"] == "x" * 200
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_long_signup_email_is_400(self, test_client):
        response = await test_client.post(
            "/api/auth/signup",
            json={"email": "a" * 310 + "@example.com", "password": "pw123456"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"].startswith("email:")

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_body(self, test_client):
        response = await test_client.get("/api/does-not-exist", headers={"X-Request-ID": "trace-404"})

        assert response.status_code == 404
        body = response.json()
        assert set(body) == {"error", "message", "details", "request_id"}
        assert body["error"] == "not_found"
        assert body["request_id"] == "trace-404"

    @pytest.mark.asyncio
    async def test_wrong_method_uses_error_body(self, test_client):
        response = await test_client.put("/api/listings", json={})

        assert response.status_code == 405
        assert response.json()["error"] == "method_not_allowed"
        assert "GET" in response.headers["allow"]


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_auth_routes_are_limited(self, settings, database):
        limited = settings.model_copy(update={"auth_rate_limit_requests": 5, "auth_rate_limit_window": 60})
        app = create_app(settings=limited, database=database)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [
                (await client.post("/api/auth/login", json={})).status_code for _ in range(6)
            ]
            blocked = await client.post("/api/auth/login", json={})
            browse = await client.get("/api/listings")

        assert statuses[:5] == [400] * 5
        assert statuses[5] == 429
        assert blocked.json()["error"] == "rate_limit_exceeded"
        assert int(blocked.headers["retry-after"]) > 0
        assert browse.status_code == 200


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_connected(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_store_down(self, app, test_client, monkeypatch):
        async def unreachable():
            raise ConnectionError("refused")

        monkeypatch.setattr(app.state.database, "ping", unreachable)

        response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_banner(self, test_client):
        response = await test_client.get("/")

        assert response.json() == {"ok": True, "message": "SwapCycle API"}
