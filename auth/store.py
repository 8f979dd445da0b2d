"""
User persistence behind a small protocol.

``AuthService`` only needs ``create`` / ``find_by_email`` / ``find_by_id``;
the paging and update helpers back the ``/api/users`` CRUD routes.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Protocol, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import DuplicateEmailError, StoreError
from database.models import User, utcnow

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    async def create(self, name: str, email: str, password_hash: str) -> User: ...

    async def find_by_email(self, email: str) -> Optional[User]: ...

    async def find_by_id(self, account_id: uuid.UUID) -> Optional[User]: ...

    async def update(
        self,
        user: User,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> User: ...


class SqlAlchemyUserStore:
    """``UserStore`` on an ``AsyncSession``.  Writes are committed before returning."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, name: str, email: str, password_hash: str) -> User:
        now = utcnow()
        user = User(
            id=uuid.uuid4(),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self._session.add(user)
        await self._commit(email)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self._scalar(select(User).where(User.email == email))

    async def find_by_id(self, account_id: uuid.UUID) -> Optional[User]:
        return await self._scalar(select(User).where(User.id == account_id))

    async def list_page(self, offset: int, limit: int) -> Tuple[List[User], int]:
        try:
            total = (await self._session.execute(select(func.count(User.id)))).scalar_one()
            result = await self._session.execute(
                select(User).order_by(User.created_at, User.id).offset(offset).limit(limit)
            )
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return list(result.scalars().all()), total

    async def update(
        self,
        user: User,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> User:
        if name is not None:
            user.name = name
        if email is not None:
            user.email = email
        if password_hash is not None:
            user.password_hash = password_hash
        user.updated_at = utcnow()
        await self._commit(user.email)
        return user

    async def delete(self, user: User) -> None:
        try:
            await self._session.delete(user)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StoreError(str(exc)) from exc

    # ── helpers ────────────────────────────────────────────────────────

    async def _commit(self, email: str) -> None:
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            # users.email is the only unique column besides the primary key.
            raise DuplicateEmailError(email) from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Write failed for %s", email)
            raise StoreError(str(exc)) from exc

    async def _scalar(self, stmt) -> Optional[User]:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
        return result.scalar_one_or_none()
