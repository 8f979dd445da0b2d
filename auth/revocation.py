"""
Revocation set for logged-out tokens.

A token's ``jti`` is recorded on logout and kept until the token would have
expired anyway; after that the signature check alone rejects it.  Exactly
one store instance is created per application and handed to the
``TokenAuthority``, so every request sees the same set.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth.errors import StoreError
from database.models import RevokedToken

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class RevocationStore(Protocol):
    async def revoke(self, jti: str, expires_at: datetime) -> None: ...

    async def is_revoked(self, jti: str) -> bool: ...

    async def purge_expired(self, now: Optional[datetime] = None) -> int: ...


class InMemoryRevocationStore:
    """
    Process-local revocation set for single-worker deployments and tests.

    ``clock`` must be the one the owning ``TokenAuthority`` uses, or the
    purge on revoke can drop entries the authority still treats as live.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._entries: Dict[str, datetime] = {}
        self._lock = asyncio.Lock()
        self._clock = clock or _now

    async def revoke(self, jti: str, expires_at: datetime) -> None:
        async with self._lock:
            self._entries.setdefault(jti, _as_aware(expires_at))
        await self.purge_expired()

    async def is_revoked(self, jti: str) -> bool:
        return jti in self._entries

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        async with self._lock:
            stale = [jti for jti, exp in self._entries.items() if exp <= now]
            for jti in stale:
                del self._entries[jti]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


class SqlRevocationStore:
    """
    ``revoked_tokens`` table.  Each call runs in its own session and commits
    before returning, independent of the request's session.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or _now

    async def revoke(self, jti: str, expires_at: datetime) -> None:
        async with self._session_factory() as session:
            try:
                existing = await session.get(RevokedToken, jti)
                if existing is not None:
                    return
                session.add(RevokedToken(jti=jti, expires_at=_as_aware(expires_at)))
                await session.commit()
            except IntegrityError:
                # Revoked concurrently by another request.
                await session.rollback()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Failed to record revocation of %s", jti)
                raise StoreError(str(exc)) from exc

    async def is_revoked(self, jti: str) -> bool:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(RevokedToken.jti).where(RevokedToken.jti == jti)
                )
            except SQLAlchemyError as exc:
                logger.exception("Revocation lookup failed for %s", jti)
                raise StoreError(str(exc)) from exc
            return result.scalar_one_or_none() is not None

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    delete(RevokedToken).where(RevokedToken.expires_at <= now)
                )
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(str(exc)) from exc
        purged = result.rowcount or 0
        if purged:
            logger.info("Purged %d expired revocation(s)", purged)
        return purged
