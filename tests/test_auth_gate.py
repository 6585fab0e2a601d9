"""
SocialFeed Backend - Authentication Gate Tests
================================================

What:  Tests for get_current_account (app/dependencies.py).
How:   Calls the dependency directly with hand-built credentials.

What we test:
    ✅ Valid token resolves to the account that owns it
    ✅ Missing header, bad token, unknown account all raise the same 401 error
"""

import uuid

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from app.dependencies import get_current_account
from app.exceptions import UnauthenticatedError
from app.services.account_service import account_service
from app.services.token_service import token_service


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestAuthenticationGate:

    @pytest.mark.asyncio
    async def test_valid_token_resolves_account(self, db_session):
        account = await account_service.create_account(db_session, "Ann", "ann@x.com", "secret1")
        token = token_service.issue(account.id)

        resolved = await get_current_account(credentials=_bearer(token), db=db_session)
        assert resolved.id == account.id

    @pytest.mark.asyncio
    async def test_missing_credentials(self, db_session):
        with pytest.raises(UnauthenticatedError, match="Please authenticate."):
            await get_current_account(credentials=None, db=db_session)

    @pytest.mark.asyncio
    async def test_invalid_token(self, db_session):
        with pytest.raises(UnauthenticatedError, match="Please authenticate."):
            await get_current_account(credentials=_bearer("garbage"), db=db_session)

    @pytest.mark.asyncio
    async def test_token_for_unknown_account(self, db_session):
        token = token_service.issue(uuid.uuid4())
        with pytest.raises(UnauthenticatedError, match="Please authenticate."):
            await get_current_account(credentials=_bearer(token), db=db_session)
