"""
SwapCycle Backend — Access Guard & Credential Tests
=====================================================

What:  Tests for bearer-credential parsing/verification and password hashing.
How:   Pure unit tests: no store, no HTTP.

What we test:
    ✅ A freshly issued credential resolves to the identity it was issued for
    ✅ Missing / malformed Authorization headers
    ✅ Wrong secret, expired credential, malformed claims
    ✅ bcrypt round-trip and malformed stored hashes
"""

import time
import uuid

import pytest

from swapcycle.exceptions import AuthError
from swapcycle.security import (
    CredentialError,
    SECONDS_PER_DAY,
    decode_credential,
    hash_password,
    issue_credential,
    verify_password,
)
from swapcycle.services.access_guard import AccessGuard

SECRET = "unit-test-secret"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestAccessGuard:
    def setup_method(self):
        self.guard = AccessGuard(SECRET)
        self.user_id = uuid.uuid4()

    def test_valid_credential_resolves_identity(self):
        token = issue_credential(str(self.user_id), "a@example.com", SECRET)

        identity = self.guard.authenticate(bearer(token))

        assert identity.id == self.user_id
        assert identity.email == "a@example.com"

    def test_lowercase_header_name(self):
        token = issue_credential(str(self.user_id), "a@example.com", SECRET)
        identity = self.guard.authenticate({"authorization": f"Bearer {token}"})
        assert identity.id == self.user_id

    def test_missing_header(self):
        with pytest.raises(AuthError, match="Missing Authorization"):
            self.guard.authenticate({})

    def test_empty_header(self):
        with pytest.raises(AuthError, match="Missing Authorization"):
            self.guard.authenticate({"Authorization": ""})

    @pytest.mark.parametrize(
        "value",
        [
            "Token abc",           # wrong scheme
            "bearer abc",          # scheme is case-sensitive
            "Bearer",              # no token
            "Bearer ",             # empty token
            "Bearer a b",          # too many parts
            "abc",
        ],
    )
    def test_malformed_header(self, value):
        with pytest.raises(AuthError, match="Bad Authorization"):
            self.guard.authenticate({"Authorization": value})

    def test_wrong_secret(self):
        token = issue_credential(str(self.user_id), "a@example.com", "someone-elses-secret")
        with pytest.raises(AuthError, match="Invalid token"):
            self.guard.authenticate(bearer(token))

    def test_expired_credential(self):
        issued = int(time.time()) - 31 * SECONDS_PER_DAY
        token = issue_credential(str(self.user_id), "a@example.com", SECRET, now=issued)
        with pytest.raises(AuthError, match="Invalid token"):
            self.guard.authenticate(bearer(token))

    def test_garbage_token(self):
        with pytest.raises(AuthError, match="Invalid token"):
            self.guard.authenticate(bearer("not.a.jwt"))

    def test_non_uuid_subject(self):
        token = issue_credential("user-42", "a@example.com", SECRET)
        with pytest.raises(AuthError, match="Invalid token"):
            self.guard.authenticate(bearer(token))

    def test_auth_error_is_401(self):
        with pytest.raises(AuthError) as exc_info:
            self.guard.authenticate({})
        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "unauthorized"


class TestCredentials:
    def test_claims_and_lifetime(self):
        token = issue_credential("id-1", "a@example.com", SECRET, ttl_days=30, now=1_700_000_000)
        # Expired in wall-clock terms; only inspect the claims layout
        with pytest.raises(CredentialError):
            decode_credential(token, SECRET)

        fresh = issue_credential("id-1", "a@example.com", SECRET, ttl_days=30)
        claims = decode_credential(fresh, SECRET)
        assert claims["id"] == "id-1"
        assert claims["email"] == "a@example.com"
        assert claims["exp"] - claims["iat"] == 30 * SECONDS_PER_DAY

    def test_missing_identity_claims(self):
        from jose import jwt

        token = jwt.encode({"sub": "x", "exp": int(time.time()) + 60}, SECRET, algorithm="HS256")
        with pytest.raises(CredentialError, match="identity claims"):
            decode_credential(token, SECRET)


class TestPasswordHashing:
    def test_round_trip(self):
        password_hash = hash_password("pw123456", rounds=4)

        assert password_hash != "pw123456"
        assert password_hash.startswith("$2")
        assert verify_password("pw123456", password_hash)
        assert not verify_password("pw1234567", password_hash)

    def test_hashes_are_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_malformed_stored_hash_is_mismatch(self):
        assert verify_password("pw123456", "not-a-bcrypt-hash") is False
