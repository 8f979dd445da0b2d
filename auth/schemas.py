"""
Outward-facing representations of accounts and issued tokens.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AccountView(BaseModel):
    """The public shape of an account.  There is no password field to leak."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite drops the offset of timezone-aware columns.
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)

    @classmethod
    def from_account(cls, account) -> "AccountView":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class IssuedToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    jti: str
    account_id: uuid.UUID
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


class AuthSession(BaseModel):
    """Result of a successful register / login."""

    model_config = ConfigDict(frozen=True)

    account: AccountView
    token: IssuedToken


# ── HTTP request bodies ────────────────────────────────────────────────
# Rules live in CredentialValidator; these only shape the JSON.


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateUserRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class PageMeta(BaseModel):
    page: int
    per_page: int
    total: int
    last_page: int


class UserPage(BaseModel):
    data: List[AccountView] = Field(default_factory=list)
    meta: PageMeta
