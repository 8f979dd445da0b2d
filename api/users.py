"""
CRUD routes for the ``users`` table.

Route prefix: /api/users — every route requires a valid bearer token.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import NoReturn

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ApiError, raise_for_error
from auth.dependencies import db_session, get_auth_service, get_current_account
from auth.errors import AuthError, StoreError
from auth.schemas import (
    AccountView,
    PageMeta,
    RegisterRequest,
    UpdateUserRequest,
    UserPage,
)
from auth.service import AuthService, store_error
from auth.store import SqlAlchemyUserStore
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"], dependencies=[Depends(get_current_account)])

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100


def _store_failure(exc: StoreError) -> NoReturn:
    logger.error("User store failure: %s", exc)
    raise_for_error(store_error(exc))


async def _get_or_404(store: SqlAlchemyUserStore, user_id: uuid.UUID) -> User:
    try:
        user = await store.find_by_id(user_id)
    except StoreError as exc:
        _store_failure(exc)
    if user is None:
        raise ApiError(status_code=status.HTTP_404_NOT_FOUND, detail={"error": "User not found"})
    return user


@router.get("", response_model=UserPage)
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    session: AsyncSession = Depends(db_session),
) -> UserPage:
    store = SqlAlchemyUserStore(session)
    try:
        users, total = await store.list_page((page - 1) * per_page, per_page)
    except StoreError as exc:
        _store_failure(exc)
    return UserPage(
        data=[AccountView.from_account(u) for u in users],
        meta=PageMeta(
            page=page,
            per_page=per_page,
            total=total,
            last_page=max(1, math.ceil(total / per_page)),
        ),
    )
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    req: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create an account without issuing it a token."""
    result = await service.create_account(req.name, req.email, req.password)
    if isinstance(result, AuthError):
        raise_for_error(result)
    return {"user": result.model_dump(mode="json")}


@router.get("/{user_id}")
async def get_user(
    user_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
):
    user = await _get_or_404(SqlAlchemyUserStore(session), user_id)
    return {"user": AccountView.from_account(user).model_dump(mode="json")}


@router.put("/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    req: UpdateUserRequest,
    session: AsyncSession = Depends(db_session),
    service: AuthService = Depends(get_auth_service),
):
    """Update name, email and/or password; omitted fields are left alone."""
    user = await _get_or_404(SqlAlchemyUserStore(session), user_id)
    result = await service.update_account(
        user, name=req.name, email=req.email, password=req.password
    )
    if isinstance(result, AuthError):
        raise_for_error(result)
    return {"user": result.model_dump(mode="json")}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> Response:
    store = SqlAlchemyUserStore(session)
    user = await _get_or_404(store, user_id)
    try:
        await store.delete(user)
    except StoreError as exc:
        _store_failure(exc)
    logger.info("Deleted user %s", user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
