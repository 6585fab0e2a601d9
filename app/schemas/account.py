"""
SocialFeed Backend - Account & Auth Schemas
=============================================

What:  Request bodies for signup/login and the outward projection of an Account.

The outward projection (`AccountResponse`) has no password field at all; the
hash stays on the ORM object and is dropped by `from_attributes` validation.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """
    Body of POST /api/auth/signup.

    Fields are optional at the schema level so an empty or missing value
    produces the service's 400 message instead of FastAPI's 422.
    """
    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Login email (case-sensitive)")
    password: Optional[str] = Field(default=None, description="Raw password")


class LoginRequest(BaseModel):
    """Body of POST /api/auth/login."""
    email: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)


class AccountResponse(BaseModel):
    """Public view of an account."""
    id: uuid.UUID = Field(description="Account identifier")
    name: str = Field(description="Display name")
    email: str = Field(description="Login email")
    created_at: datetime = Field(description="Signup time (UTC)")

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by signup (201) and login (200)."""
    user: AccountResponse
    token: str = Field(description="Bearer token for the Authorization header")
