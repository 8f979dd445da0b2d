"""
Account lifecycle: register, login, current account, logout.

``AuthService`` receives its ``UserStore`` and ``TokenAuthority``
explicitly and never raises for expected failures; every operation
returns either its result or an ``AuthError``.

Anti-enumeration rules:
  • unknown email and wrong password produce the same ``AuthError``
  • bad signature, expiry, revocation and garbage tokens all produce the
    same ``INVALID_TOKEN`` error (the real cause rides along in ``cause``)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from auth.errors import (
    DUPLICATE_EMAIL_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
    AuthError,
    DuplicateEmailError,
    ErrorKind,
    StoreError,
)
from auth.jwt import TokenAuthority, VerificationFailure
from auth.password import DEFAULT_ROUNDS, hash_password, verify_password
from auth.schemas import AccountView, AuthSession
from auth.store import UserStore
from auth.validators import CredentialValidator, FieldError, errors_as_dict
from database.models import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"

_DUMMY_PASSWORD = "dummy-password-for-timing"


async def make_dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """A throwaway hash so unknown-email logins pay the same bcrypt cost."""
    return await asyncio.to_thread(hash_password, _DUMMY_PASSWORD, rounds)


def validation_error(errors: list[FieldError]) -> AuthError:
    return AuthError(
        kind=ErrorKind.VALIDATION_FAILED,
        message=VALIDATION_FAILED_MESSAGE,
        fields=errors_as_dict(errors),
    )


def duplicate_email_error() -> AuthError:
    return AuthError(
        kind=ErrorKind.DUPLICATE_EMAIL,
        message=DUPLICATE_EMAIL_MESSAGE,
        fields={"email": [DUPLICATE_EMAIL_MESSAGE]},
    )


def store_error(exc: StoreError) -> AuthError:
    return AuthError(kind=ErrorKind.STORE_ERROR, message="Storage failure", cause=exc)


class AuthService:
    def __init__(
        self,
        users: UserStore,
        tokens: TokenAuthority,
        validator: Optional[CredentialValidator] = None,
        *,
        hash_rounds: int = DEFAULT_ROUNDS,
        dummy_hash: Optional[str] = None,
    ):
        self._users = users
        self._tokens = tokens
        self._validator = validator or CredentialValidator()
        self._hash_rounds = hash_rounds
        # Normally computed once at startup; filled lazily otherwise.
        self._dummy_hash = dummy_hash

    async def register(
        self, name: str, email: str, password: str
    ) -> Union[AuthSession, AuthError]:
        account = await self.create_account(name, email, password)
        if isinstance(account, AuthError):
            return account

        token = self._tokens.issue(account.id)
        return AuthSession(account=account, token=token)

    async def create_account(
        self, name: str, email: str, password: str
    ) -> Union[AccountView, AuthError]:
        """Validate, hash and store a new account without issuing a token."""
        errors = self._validator.validate_registration(name, email, password)
        if errors:
            return validation_error(errors)

        # bcrypt is deliberately slow; keep it off the event loop.
        password_hash = await self._hash(password)

        try:
            account = await self._users.create(name, email, password_hash)
        except DuplicateEmailError:
            logger.info("Registration rejected: email already in use")
            return duplicate_email_error()
        except StoreError as exc:
            logger.error("Registration failed: %s", exc)
            return store_error(exc)

        logger.info("Registered account %s", account.id)
        return AccountView.from_account(account)

    async def update_account(
        self,
        account: User,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Union[AccountView, AuthError]:
        """Apply a partial profile update; ``None`` fields are left alone."""
        errors = self._validator.validate_profile_update(name=name, email=email, password=password)
        if errors:
            return validation_error(errors)

        # A failed write rolls back and expires ``account``.
        account_id = account.id
        password_hash = await self._hash(password) if password is not None else None
        try:
            account = await self._users.update(
                account, name=name, email=email, password_hash=password_hash
            )
        except DuplicateEmailError:
            logger.info("Update of %s rejected: email already in use", account_id)
            return duplicate_email_error()
        except StoreError as exc:
            logger.error("Update of %s failed: %s", account_id, exc)
            return store_error(exc)

        logger.info("Updated account %s", account_id)
        return AccountView.from_account(account)

    async def login(self, email: str, password: str) -> Union[AuthSession, AuthError]:
        errors = self._validator.validate_login(email, password)
        if errors:
            return validation_error(errors)

        try:
            account = await self._users.find_by_email(email)
        except StoreError as exc:
            logger.error("Login lookup failed: %s", exc)
            return store_error(exc)

        if account is not None:
            stored_hash = account.password_hash
        else:
            stored_hash = await self._timing_hash()
        matches = await asyncio.to_thread(verify_password, password, stored_hash)
        if account is None or not matches:
            return AuthError(kind=ErrorKind.INVALID_CREDENTIALS, message=INVALID_CREDENTIALS_MESSAGE)

        token = self._tokens.issue(account.id)
        logger.info("Login: account %s", account.id)
        return AuthSession(account=AccountView.from_account(account), token=token)

    async def current_account(self, token: str) -> Union[AccountView, AuthError]:
        try:
            claims = await self._tokens.verify(token)
        except StoreError as exc:
            logger.error("Token check failed: %s", exc)
            return store_error(exc)
        if isinstance(claims, VerificationFailure):
            return self._invalid_token(claims)

        try:
            account = await self._users.find_by_id(claims.account_id)
        except StoreError as exc:
            logger.error("Account lookup failed: %s", exc)
            return store_error(exc)
        if account is None:
            return AuthError(kind=ErrorKind.ACCOUNT_NOT_FOUND, message="Account not found")
        return AccountView.from_account(account)

    async def logout(self, token: str) -> Optional[AuthError]:
        """Revoke ``token``.  Returns ``None`` on success, including repeat logouts."""
        try:
            claims = await self._tokens.verify(token)
        except StoreError as exc:
            logger.error("Token check failed: %s", exc)
            return store_error(exc)
        if claims is VerificationFailure.REVOKED:
            return None
        if isinstance(claims, VerificationFailure):
            return self._invalid_token(claims)

        try:
            await self._tokens.revoke(claims)
        except StoreError as exc:
            logger.error("Logout failed: %s", exc)
            return store_error(exc)
        logger.info("Logout: account %s", claims.account_id)
        return None

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self._hash_rounds)

    async def _timing_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await make_dummy_hash(self._hash_rounds)
        return self._dummy_hash

    @staticmethod
    def _invalid_token(cause: VerificationFailure) -> AuthError:
        logger.debug("Token rejected: %s", cause.value)
        return AuthError(kind=ErrorKind.INVALID_TOKEN, message=INVALID_TOKEN_MESSAGE, cause=cause)
