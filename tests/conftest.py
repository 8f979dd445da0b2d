"""
Shared fixtures: a throwaway SQLite database per test, a controllable clock
and pre-wired auth collaborators.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from auth.jwt import TokenAuthority
from auth.revocation import InMemoryRevocationStore
from auth.service import AuthService
from auth.store import SqlAlchemyUserStore
from config.settings import Settings
from database.session import build_engine, build_session_factory, create_tables

TEST_SECRET = "test-jwt-secret-for-testing-only-0123456789"
FAST_ROUNDS = 4  # bcrypt minimum; keeps the suite fast
STRONG_PASSWORD = "Str0ngPass!23"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def engine(db_url):
    engine = build_engine(db_url)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def revocations() -> InMemoryRevocationStore:
    return InMemoryRevocationStore()


@pytest.fixture
def token_authority(revocations) -> TokenAuthority:
    return TokenAuthority(TEST_SECRET, revocations)


@pytest.fixture
def auth_service(session, token_authority) -> AuthService:
    return AuthService(SqlAlchemyUserStore(session), token_authority, hash_rounds=FAST_ROUNDS)


# ── HTTP ───────────────────────────────────────────────────────────────


@pytest.fixture
def app_settings(db_url) -> Settings:
    return Settings(
        _env_file=None,
        database_url=db_url,
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=FAST_ROUNDS,
        revocation_backend="database",
    )


@pytest.fixture
def client(app_settings):
    from main import create_app

    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


def register_user(client, name="Ada Lovelace", email="ada@example.com", password=STRONG_PASSWORD):
    return client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
