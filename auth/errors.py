"""
Typed failures returned by ``AuthService`` and raised by the user store.

Service operations return an ``AuthError`` value instead of raising, so the
HTTP layer has to look at ``kind`` to pick a status code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

VALIDATION_FAILED_MESSAGE = "The given data was invalid."
DUPLICATE_EMAIL_MESSAGE = "This email is already taken."


class ErrorKind(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    ACCOUNT_NOT_FOUND = "account_not_found"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class AuthError:
    kind: ErrorKind
    message: str
    fields: Dict[str, List[str]] = field(default_factory=dict)
    # Internal detail (e.g. a VerificationFailure); never sent to clients.
    cause: Optional[Any] = field(default=None, compare=False, repr=False)


# ── store-level exceptions ─────────────────────────────────────────────


class StoreError(Exception):
    """Wraps an unexpected persistence failure."""


class DuplicateEmailError(StoreError):
    """The ``users.email`` unique constraint rejected a write."""

    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email
