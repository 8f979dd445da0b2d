"""
JWT creation, verification and revocation.

Tokens are HS256-signed JWTs (PyJWT) carrying ``sub`` (account id), ``jti``,
``iat`` and ``exp``.  Verification reports *why* a token was rejected
through ``VerificationFailure``; callers outside this package collapse every
cause into a single "invalid token" answer.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Union

import jwt

from auth.revocation import RevocationStore
from auth.schemas import IssuedToken

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=60)
_REQUIRED_CLAIMS = ["sub", "jti", "iat", "exp"]


class VerificationFailure(str, Enum):
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    REVOKED = "revoked"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class TokenClaims:
    account_id: uuid.UUID
    jti: str
    issued_at: datetime
    expires_at: datetime


VerifyResult = Union[TokenClaims, VerificationFailure]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenAuthority:
    """Issues, verifies and revokes session tokens signed with one process-wide secret."""

    def __init__(
        self,
        secret: str,
        revocations: RevocationStore,
        *,
        ttl: timedelta = DEFAULT_TTL,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("JWT secret key cannot be empty")
        if ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")
        self._secret = secret
        self._revocations = revocations
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, account_id: uuid.UUID) -> IssuedToken:
        """Create a signed token bound to ``account_id``."""
        # JWT timestamps are whole seconds.
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self._ttl
        jti = secrets.token_hex(16)
        payload = {
            "sub": str(account_id),
            "jti": jti,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(
            token=token,
            jti=jti,
            account_id=account_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    async def verify(self, token: str) -> VerifyResult:
        """
        Return the token's claims, or the reason it is not acceptable.

        Signature first, then claim shape, then the revocation set, then
        expiry (against the injected clock rather than PyJWT's).
        """
        claims = self._decode(token)
        if isinstance(claims, VerificationFailure):
            return claims

        if await self._revocations.is_revoked(claims.jti):
            return VerificationFailure.REVOKED
        if self._clock() >= claims.expires_at:
            return VerificationFailure.EXPIRED
        return claims

    async def revoke(self, claims: TokenClaims) -> None:
        """Add the token to the revocation set until its natural expiry."""
        await self._revocations.revoke(claims.jti, claims.expires_at)
        logger.info("Revoked token %s for account %s", claims.jti, claims.account_id)

    def _decode(self, token: str) -> VerifyResult:
        if not token:
            return VerificationFailure.MALFORMED
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidSignatureError:
            return VerificationFailure.BAD_SIGNATURE
        except jwt.InvalidAlgorithmError:
            return VerificationFailure.BAD_SIGNATURE
        except jwt.InvalidTokenError:
            return VerificationFailure.MALFORMED

        try:
            return TokenClaims(
                account_id=uuid.UUID(payload["sub"]),
                jti=str(payload["jti"]),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            )
        except (TypeError, ValueError, OverflowError):
            return VerificationFailure.MALFORMED
