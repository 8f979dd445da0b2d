"""
FastAPI dependencies for authentication.

Collaborators are built once in ``main.create_app`` and kept on
``app.state``; these functions assemble a per-request ``AuthService``
around the request's DB session.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ApiError, raise_for_error
from auth.errors import AuthError
from auth.schemas import AccountView
from auth.service import AuthService
from auth.store import SqlAlchemyUserStore
from database.session import get_db_session

_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_auth_service(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> AuthService:
    state = request.app.state
    return AuthService(
        SqlAlchemyUserStore(session),
        state.token_authority,
        state.credential_validator,
        hash_rounds=state.settings.bcrypt_rounds,
        dummy_hash=getattr(state, "dummy_password_hash", None),
    )


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """Return the raw Bearer token from the ``Authorization`` header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise ApiError(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing bearer token"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_account(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
) -> AccountView:
    """Resolve the caller's account or reject the request with 401."""
    result = await service.current_account(token)
    if isinstance(result, AuthError):
        raise_for_error(result)
    return result
