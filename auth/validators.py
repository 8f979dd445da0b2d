"""
Structural validation of credentials before they reach ``AuthService``.

Validation never raises: each function returns a list of ``FieldError``,
empty when the input is acceptable.  All violated rules of a field are
reported together, so a single call tells the client everything that is
wrong with its payload.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from email_validator import EmailNotValidError, validate_email

DEFAULT_SPECIAL_CHARACTERS = "@$!%*#?&"
DEFAULT_MIN_PASSWORD_LENGTH = 12

NAME_MIN_LENGTH = 2
MAX_LENGTH = 255


@dataclass
class FieldError:
    field: str
    messages: List[str] = field(default_factory=list)


def errors_as_dict(errors: List[FieldError]) -> Dict[str, List[str]]:
    """Flatten a list of ``FieldError`` into ``{field: [messages]}``."""
    result: Dict[str, List[str]] = {}
    for error in errors:
        result.setdefault(error.field, []).extend(error.messages)
    return result


def _is_blank(value: Optional[str]) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class CredentialValidator:
    """Name / email / password rules shared by registration, login and profile updates."""

    def __init__(
        self,
        special_characters: str = DEFAULT_SPECIAL_CHARACTERS,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
    ):
        if not special_characters:
            raise ValueError("At least one special character must be allowed")
        self.special_characters = special_characters
        self.min_password_length = min_password_length
        self._special_re = re.compile(f"[{re.escape(special_characters)}]")

    # ── public API ─────────────────────────────────────────────────────

    def validate_registration(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> List[FieldError]:
        errors = [
            self._check_name(name),
            self._check_email(email),
            self._check_password(password),
        ]
        return [e for e in errors if e is not None]

    def validate_login(self, email: Optional[str], password: Optional[str]) -> List[FieldError]:
        errors: List[FieldError] = []
        email_error = self._check_email(email, max_length=None)
        if email_error is not None:
            errors.append(email_error)
        # Complexity was enforced when the password was set.
        if password is None or password == "":
            errors.append(FieldError("password", ["The password field is required."]))
        return errors

    def validate_profile_update(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> List[FieldError]:
        """Apply registration rules to the fields that are present."""
        errors: List[Optional[FieldError]] = []
        if name is not None:
            errors.append(self._check_name(name))
        if email is not None:
            errors.append(self._check_email(email))
        if password is not None:
            errors.append(self._check_password(password))
        return [e for e in errors if e is not None]

    # ── field rules ────────────────────────────────────────────────────

    def _check_name(self, name: Optional[str]) -> Optional[FieldError]:
        if _is_blank(name):
            return FieldError("name", ["The name field is required."])
        messages = []
        if len(name) < NAME_MIN_LENGTH:
            messages.append(f"The name must be at least {NAME_MIN_LENGTH} characters.")
        if len(name) > MAX_LENGTH:
            messages.append(f"The name may not be greater than {MAX_LENGTH} characters.")
        return FieldError("name", messages) if messages else None

    def _check_email(
        self,
        email: Optional[str],
        max_length: Optional[int] = MAX_LENGTH,
    ) -> Optional[FieldError]:
        if _is_blank(email):
            return FieldError("email", ["The email field is required."])
        messages = []
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            messages.append("The email must be a valid email address.")
        if max_length is not None and len(email) > max_length:
            messages.append(f"The email may not be greater than {max_length} characters.")
        return FieldError("email", messages) if messages else None

    def _check_password(self, password: Optional[str]) -> Optional[FieldError]:
        if password is None or password == "":
            return FieldError("password", ["The password field is required."])
        messages = []
        if len(password) < self.min_password_length:
            messages.append(
                f"The password must be at least {self.min_password_length} characters."
            )
        if not re.search(r"[a-z]", password):
            messages.append("The password must contain at least one lowercase letter.")
        if not re.search(r"[A-Z]", password):
            messages.append("The password must contain at least one uppercase letter.")
        if not re.search(r"[0-9]", password):
            messages.append("The password must contain at least one digit.")
        if not self._special_re.search(password):
            messages.append(
                "The password must contain at least one special character "
                f"({self.special_characters})."
            )
        return FieldError("password", messages) if messages else None
