"""
Translate ``AuthError`` values and request-parsing failures into HTTP responses.

Every error body has the shape ``{"error": message}``, plus ``errors``
(``{field: [messages]}``) for validation failures.
"""

from __future__ import annotations

from typing import Any, Dict, List, NoReturn

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from auth.errors import VALIDATION_FAILED_MESSAGE, AuthError, ErrorKind

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.DUPLICATE_EMAIL: 422,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ACCOUNT_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.STORE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# First element of a pydantic ``loc`` names where the value came from.
_LOC_SOURCES = {"body", "query", "path", "header", "cookie"}


def error_body(error: AuthError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error.message}
    if error.fields:
        body["errors"] = error.fields
    return body


def error_response(error: AuthError) -> JSONResponse:
    return JSONResponse(status_code=STATUS_BY_KIND[error.kind], content=error_body(error))


class ApiError(HTTPException):
    """HTTPException whose detail is already an ``{"error": …}`` body."""


def raise_for_error(error: AuthError) -> NoReturn:
    headers = None
    if STATUS_BY_KIND[error.kind] == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    raise ApiError(
        status_code=STATUS_BY_KIND[error.kind],
        detail=error_body(error),
        headers=headers,
    )


def _field_name(loc) -> str:
    names = [str(part) for part in loc if isinstance(part, str) and part not in _LOC_SOURCES]
    # Malformed JSON reports only ("body", <offset>).
    return names[-1] if names else "body"


def validation_fields(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Group FastAPI's validation errors into ``{field: [messages]}``."""
    fields: Dict[str, List[str]] = {}
    for err in exc.errors():
        fields.setdefault(_field_name(err.get("loc", ())), []).append(
            err.get("msg", "Invalid value.")
        )
    return fields


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": VALIDATION_FAILED_MESSAGE, "errors": validation_fields(exc)},
    )
