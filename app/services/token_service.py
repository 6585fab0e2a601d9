"""
SocialFeed Backend - Session Token Service
============================================

What:  Issues and verifies signed, stateless session tokens (JWT, HMAC).
How:   PyJWT encodes {"_id": <account id>, "iat": <now>} with the process-wide
       secret; `exp` is added only when JWT_EXPIRES_MINUTES is configured.
Who:   AccountService callers (signup/login routes) issue; the authentication
       gate verifies.

There is no server-side session table and no revocation list. A token stays
valid until it expires (if expiry is enabled) or the secret is rotated.
Verification checks the signature and claims only; whether the account still
exists is the authentication gate's concern.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from app.config import settings
from app.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# Claim name shared with tokens issued by earlier clients of this API.
ACCOUNT_ID_CLAIM = "_id"


class TokenService:
    """Stateless JWT issuer/verifier bound to one secret and algorithm."""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expires_minutes: Optional[int] = None,
    ):
        """
        Args:
            secret: Signing secret. Defaults to settings.jwt_secret.
            algorithm: HMAC algorithm. Defaults to settings.jwt_algorithm.
            expires_minutes: Token lifetime; None disables the `exp` claim.
                             Defaults to settings.jwt_expires_minutes.
        """
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm
        self._expires_minutes = (
            expires_minutes if expires_minutes is not None else settings.jwt_expires_minutes
        )

    def issue(self, account_id: uuid.UUID) -> str:
        """Sign a token asserting `account_id`."""
        now = datetime.now(timezone.utc)
        payload = {
            ACCOUNT_ID_CLAIM: str(account_id),
            "iat": now,
        }
        if self._expires_minutes:
            payload["exp"] = now + timedelta(minutes=self._expires_minutes)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> uuid.UUID:
        """
        Recover the account id from a token.

        Raises:
            InvalidTokenError: bad signature, malformed token, expired token,
                               or a missing/unparseable account id claim.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": [ACCOUNT_ID_CLAIM]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError(message="Session token has expired")
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})

        try:
            return uuid.UUID(str(claims[ACCOUNT_ID_CLAIM]))
        except ValueError:
            raise InvalidTokenError(context={"reason": "bad_account_id"})


# ── Singleton Instance ────────────────────────────────────────────────────
token_service = TokenService()
