"""
User Auth API — application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.errors import ApiError, api_error_handler, request_validation_handler
from api.middleware import register_middleware
from api.users import router as users_router
from auth.jwt import TokenAuthority
from auth.revocation import InMemoryRevocationStore, SqlRevocationStore
from auth.routes import router as auth_router
from auth.service import make_dummy_hash
from auth.validators import CredentialValidator
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, create_tables

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    for _noisy in ("sqlalchemy.engine", "aiosqlite", "httpx", "httpcore"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)


def build_revocation_store(settings: Settings, session_factory):
    backend = settings.revocation_backend.lower()
    if backend == "memory":
        return InMemoryRevocationStore()
    if backend == "database":
        return SqlRevocationStore(session_factory)
    raise ValueError(f"Unknown revocation backend: {settings.revocation_backend!r}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or config

    engine = build_engine(settings.database_url)
    session_factory = build_session_factory(engine)
    revocations = build_revocation_store(settings, session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_tables:
            logger.info("Creating tables…")
            await create_tables(engine)
        await revocations.purge_expired()
        app.state.dummy_password_hash = await make_dummy_hash(settings.bcrypt_rounds)
        logger.info("Application ready to accept requests.")
        yield
        await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description="User registration, login and CRUD with JWT authentication.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.revocations = revocations
    app.state.token_authority = TokenAuthority(
        settings.jwt_secret,
        revocations,
        ttl=timedelta(minutes=settings.jwt_ttl_minutes),
        algorithm=settings.jwt_algorithm,
    )
    app.state.credential_validator = CredentialValidator(
        special_characters=settings.password_special_characters,
        min_password_length=settings.password_min_length,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Routes
    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(users_router, prefix="/api/users")

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


configure_logging(config)
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
