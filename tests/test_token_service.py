"""
SocialFeed Backend - Token Service Unit Tests
===============================================

What:  Tests for TokenService issue/verify.
How:   Pure unit tests; tokens are signed with throwaway secrets.

What we test:
    ✅ issue → verify recovers the account id
    ✅ `_id` and `iat` claims present, `exp` only when a lifetime is configured
    ✅ Wrong secret, garbage, expired token and bad `_id` all raise InvalidTokenError
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.exceptions import InvalidTokenError
from app.services.token_service import TokenService

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


class TestTokenRoundTrip:

    def setup_method(self):
        self.service = TokenService(secret=SECRET, algorithm="HS256")

    def test_verify_returns_issued_account_id(self):
        account_id = uuid.uuid4()
        token = self.service.issue(account_id)
        assert self.service.verify(token) == account_id

    def test_token_carries_id_and_iat_without_exp_by_default(self):
        account_id = uuid.uuid4()
        claims = jwt.decode(self.service.issue(account_id), SECRET, algorithms=["HS256"])
        assert claims["_id"] == str(account_id)
        assert "iat" in claims
        assert "exp" not in claims

    def test_exp_added_when_lifetime_configured(self):
        service = TokenService(secret=SECRET, algorithm="HS256", expires_minutes=5)
        claims = jwt.decode(service.issue(uuid.uuid4()), SECRET, algorithms=["HS256"])
        assert claims["exp"] > claims["iat"]


class TestTokenRejection:

    def setup_method(self):
        self.service = TokenService(secret=SECRET, algorithm="HS256")

    def test_wrong_secret_rejected(self):
        other = TokenService(secret="a-completely-different-secret-for-signing", algorithm="HS256")
        token = other.issue(uuid.uuid4())
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_garbage_rejected(self):
        with pytest.raises(InvalidTokenError):
            self.service.verify("not-a-jwt")

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"_id": str(uuid.uuid4()), "iat": past, "exp": past + timedelta(minutes=1)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError, match="expired"):
            self.service.verify(token)

    def test_missing_id_claim_rejected(self):
        token = jwt.encode({"iat": datetime.now(timezone.utc)}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_non_uuid_id_claim_rejected(self):
        token = jwt.encode({"_id": "5f2b9c0e1a", "iat": datetime.now(timezone.utc)}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)
