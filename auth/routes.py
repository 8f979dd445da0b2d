"""
Auth API routes — register, login, me, logout.

Route prefix: /api/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.errors import error_response
from auth.dependencies import get_auth_service, get_bearer_token
from auth.errors import AuthError
from auth.schemas import AuthSession, LoginRequest, RegisterRequest
from auth.service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _session_body(message: str, session: AuthSession) -> Dict[str, Any]:
    return {
        "message": message,
        "user": session.account.model_dump(mode="json"),
        "token": session.token.token,
        "token_type": "bearer",
        "expires_in": session.token.expires_in,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Register a new user and log them in."""
    result = await service.register(req.name, req.email, req.password)
    if isinstance(result, AuthError):
        return error_response(result)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=_session_body("User created successfully", result),
    )


@router.post("/login")
async def login(
    req: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Login with email + password."""
    result = await service.login(req.email, req.password)
    if isinstance(result, AuthError):
        return error_response(result)
    return _session_body("Login successful", result)


@router.get("/me")
async def me(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.current_account(token)
    if isinstance(result, AuthError):
        return error_response(result)
    return {"user": result.model_dump(mode="json")}


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke the presented token."""
    error = await service.logout(token)
    if error is not None:
        return error_response(error)
    return {"message": "Logged out successfully"}
