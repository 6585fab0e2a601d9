"""
SocialFeed Backend - Account Service (Identity & Credential Store)
====================================================================

What:  Signup, lookup and password verification for accounts.
How:   bcrypt hashes (cost = settings.bcrypt_rounds) computed in a worker
       thread so hashing never blocks the event loop; rows persisted through
       the request's AsyncSession.
Who:   Called by the auth routes and by the authentication gate.

Invariants:
    - Emails are unique, compared exactly (no case folding or trimming).
      The unique index is the final arbiter: two concurrent signups for the
      same email both pass the existence check, one wins the INSERT and the
      other is translated from IntegrityError into ConflictError.
    - The raw password is never stored and the hash never leaves this layer
      through a response schema.
    - Login failures are uniform: an unknown email still pays for one bcrypt
      comparison against a throwaway hash.
"""

import asyncio
import logging
import uuid
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ConflictError, InvalidCredentialsError, ValidationError
from app.models.account import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, Account

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


def _hash_password(raw: str, rounds: int) -> str:
    return bcrypt.hashpw(raw.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def _check_password(raw: str, hashed: str) -> bool:
    encoded = raw.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.error("Malformed password hash encountered during login")
        return False


class AccountService:
    """
    Business logic for the identity store.

    Responsibilities:
        - create_account(): validated signup with duplicate-email detection
        - find_by_email() / get_account(): exact lookups
        - verify_credential(): bcrypt comparison
        - authenticate(): login with a uniform failure mode
    """

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds or settings.bcrypt_rounds
        self._dummy_hash: Optional[str] = None

    async def hash_password(self, raw: str) -> str:
        return await asyncio.to_thread(_hash_password, raw, self.rounds)

    async def verify_credential(self, account: Account, raw_password: str) -> bool:
        """Compare a raw password with the account's stored hash."""
        return await asyncio.to_thread(_check_password, raw_password, account.password)

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[Account]:
        result = await db.execute(select(Account).where(Account.email == email))
        return result.scalar_one_or_none()

    async def get_account(self, db: AsyncSession, account_id: uuid.UUID) -> Optional[Account]:
        return await db.get(Account, account_id)

    async def create_account(
        self,
        db: AsyncSession,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> Account:
        """
        Register a new account.

        Raises:
            ValidationError: name, email or password missing or empty, name or
                             email longer than its column, or the password
                             longer than bcrypt can represent.
            ConflictError:   the email is already registered.
        """
        if not name or not email or not password:
            raise ValidationError(message="Name, email, and password are required")

        for field, value, limit in (
            ("name", name, NAME_MAX_LENGTH),
            ("email", email, EMAIL_MAX_LENGTH),
        ):
            if len(value) > limit:
                raise ValidationError(
                    message=f"{field.capitalize()} must be at most {limit} characters",
                    field=field,
                    context={"max_length": limit, "length": len(value)},
                )

        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes",
                field="password",
            )

        if await self.find_by_email(db, email) is not None:
            raise ConflictError()

        account = Account(
            name=name,
            email=email,
            password=await self.hash_password(password),
        )
        db.add(account)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a signup race on the unique email index
            await db.rollback()
            raise ConflictError()

        logger.info("Account created: %s", account.id)
        return account

    async def authenticate(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> Account:
        """
        Resolve login credentials to an account.

        Raises:
            InvalidCredentialsError: for a missing field, unknown email, or wrong
                                     password alike.
        """
        if not email or not password:
            raise InvalidCredentialsError()

        account = await self.find_by_email(db, email)
        if account is None:
            await asyncio.to_thread(_check_password, password, await self._get_dummy_hash())
            raise InvalidCredentialsError()

        if not await self.verify_credential(account, password):
            raise InvalidCredentialsError()

        return account

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await self.hash_password(uuid.uuid4().hex)
        return self._dummy_hash


# ── Singleton Instance ────────────────────────────────────────────────────
account_service = AccountService()
