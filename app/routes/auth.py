"""
SocialFeed Backend - Auth Route Handlers
==========================================

What:  POST /api/auth/signup, POST /api/auth/login and GET /api/auth/me.
How:   Thin handlers: AccountService does the identity work, TokenService
       signs the session token. Errors propagate to the global handlers.
Who:   Called by the frontend login and signup forms.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import CurrentAccount
from app.schemas.account import AccountResponse, AuthResponse, LoginRequest, SignupRequest
from app.schemas.common import ErrorResponse
from app.services.account_service import account_service
from app.services.token_service import token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={
        201: {"description": "Account created", "model": AuthResponse},
        400: {"description": "Missing field or email already exists", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """
    Register an account and log it in.

    Error responses (handled by global exception handlers):
        HTTP 400: "Name, email, and password are required" / "Email already exists"
    """
    account = await account_service.create_account(
        db=db,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    return AuthResponse(
        user=AccountResponse.model_validate(account),
        token=token_service.issue(account.id),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        200: {"description": "Credentials accepted", "model": AuthResponse},
        400: {"description": "Invalid login credentials", "model": ErrorResponse},
    },
    summary="Exchange email and password for a session token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    account = await account_service.authenticate(db=db, email=body.email, password=body.password)
    logger.info("Account %s logged in", account.id)
    return AuthResponse(
        user=AccountResponse.model_validate(account),
        token=token_service.issue(account.id),
    )


@router.get(
    "/me",
    response_model=AccountResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Return the account behind the bearer token",
)
async def me(account: CurrentAccount) -> AccountResponse:
    return AccountResponse.model_validate(account)
