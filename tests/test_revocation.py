"""
Tests for the in-memory and SQL revocation stores.
"""

from datetime import datetime, timedelta, timezone

import pytest

from auth.revocation import InMemoryRevocationStore, SqlRevocationStore
from conftest import FrozenClock


def _in(delta: timedelta) -> datetime:
    return datetime.now(timezone.utc) + delta


class TestInMemoryRevocationStore:
    @pytest.mark.asyncio
    async def test_revoke_and_lookup(self):
        store = InMemoryRevocationStore()
        await store.revoke("jti-1", _in(timedelta(hours=1)))
        assert await store.is_revoked("jti-1")
        assert not await store.is_revoked("jti-2")

    @pytest.mark.asyncio
    async def test_revoke_twice_is_noop(self):
        store = InMemoryRevocationStore()
        await store.revoke("jti-1", _in(timedelta(hours=1)))
        await store.revoke("jti-1", _in(timedelta(hours=1)))
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_purge_only_drops_expired(self):
        store = InMemoryRevocationStore()
        await store.revoke("live", _in(timedelta(hours=1)))
        store._entries["stale"] = _in(-timedelta(minutes=1))

        assert await store.purge_expired() == 1
        assert await store.is_revoked("live")
        assert not await store.is_revoked("stale")

    @pytest.mark.asyncio
    async def test_purge_uses_injected_clock(self):
        clock = FrozenClock(datetime(2020, 1, 1, tzinfo=timezone.utc))
        store = InMemoryRevocationStore(clock=clock)

        await store.revoke("jti-1", clock() + timedelta(hours=1))
        assert await store.is_revoked("jti-1")

        clock.advance(timedelta(hours=2))
        assert await store.purge_expired() == 1
        assert not await store.is_revoked("jti-1")


class TestSqlRevocationStore:
    @pytest.mark.asyncio
    async def test_revoke_and_lookup(self, session_factory):
        store = SqlRevocationStore(session_factory)
        await store.revoke("jti-1", _in(timedelta(hours=1)))
        assert await store.is_revoked("jti-1")
        assert not await store.is_revoked("jti-2")

    @pytest.mark.asyncio
    async def test_revoke_twice_is_noop(self, session_factory):
        store = SqlRevocationStore(session_factory)
        await store.revoke("jti-1", _in(timedelta(hours=1)))
        await store.revoke("jti-1", _in(timedelta(hours=1)))
        assert await store.is_revoked("jti-1")

    @pytest.mark.asyncio
    async def test_visible_to_other_instances(self, session_factory):
        worker_a = SqlRevocationStore(session_factory)
        worker_b = SqlRevocationStore(session_factory)

        await worker_a.revoke("jti-1", _in(timedelta(hours=1)))

        assert await worker_b.is_revoked("jti-1")

    @pytest.mark.asyncio
    async def test_purge_only_drops_expired(self, session_factory):
        store = SqlRevocationStore(session_factory)
        await store.revoke("live", _in(timedelta(hours=1)))
        await store.revoke("stale", _in(-timedelta(minutes=1)))

        assert await store.purge_expired() == 1
        assert await store.is_revoked("live")
        assert not await store.is_revoked("stale")

    @pytest.mark.asyncio
    async def test_purge_uses_injected_clock(self, session_factory):
        clock = FrozenClock(datetime(2020, 1, 1, tzinfo=timezone.utc))
        store = SqlRevocationStore(session_factory, clock=clock)
        await store.revoke("jti-1", clock() + timedelta(hours=1))

        assert await store.purge_expired() == 0
        clock.advance(timedelta(hours=2))
        assert await store.purge_expired() == 1
