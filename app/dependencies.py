"""
SocialFeed Backend - Request Dependencies (Authentication Gate)
=================================================================

What:  FastAPI dependency that turns the Authorization header into a verified
       caller Account, or rejects the request.
How:   Bearer token → TokenService.verify → AccountService.get_account.
Who:   Every owner-gated or attributed route depends on `CurrentAccount`.
When:  Once per request; holds no state beyond that single lookup.

Every failure raises the same UnauthenticatedError, whether the header is
missing, the token is bad, or the account it names no longer exists.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import InvalidTokenError, UnauthenticatedError
from app.middleware.request_id import request_id_var
from app.models.account import Account
from app.services.account_service import account_service
from app.services.token_service import token_service

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must raise our own 401, not FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False, description="Authorization: Bearer <token>")


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Account:
    """
    Resolve the caller identity for this request.

    Raises:
        UnauthenticatedError: missing/non-Bearer header, invalid or expired
                              token, or token for an unknown account.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    try:
        account_id = token_service.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("[%s] Rejected token: %s", request_id_var.get(""), e.message)
        raise UnauthenticatedError()

    account = await account_service.get_account(db, account_id)
    if account is None:
        logger.info("[%s] Token for unknown account %s", request_id_var.get(""), account_id)
        raise UnauthenticatedError()

    return account


# Type annotation for dependency injection in route signatures
CurrentAccount = Annotated[Account, Depends(get_current_account)]
