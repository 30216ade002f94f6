import asyncio

import pytest

from fxconvert.services.history import (
    ANONYMOUS_USER,
    ConversionRecord,
    InMemoryHistoryStore,
    resolve_user_id,
)

pytestmark = pytest.mark.asyncio


def _record(i: int, user_id: str = ANONYMOUS_USER) -> ConversionRecord:
    return ConversionRecord(
        from_currency="USD",
        to_currency="EUR",
        amount=float(i),
        result=float(i) * 0.9,
        rate=0.9,
        user_id=user_id,
    )


async def test_append_caps_at_twenty_newest_first():
    store = InMemoryHistoryStore()
    for i in range(25):
        await store.append("alice", _record(i, "alice"))

    history = await store.list("alice")

    assert len(history) == 20
    assert [r.amount for r in history] == [float(i) for i in range(24, 4, -1)]


async def test_unknown_user_has_empty_history():
    store = InMemoryHistoryStore()
    assert await store.list("nobody") == []


async def test_clear_removes_only_that_user():
    store = InMemoryHistoryStore()
    await store.append("alice", _record(1, "alice"))
    await store.append("bob", _record(2, "bob"))

    await store.clear("alice")
    await store.clear("never-seen")

    assert await store.list("alice") == []
    assert [r.amount for r in await store.list("bob")] == [2.0]


async def test_missing_user_id_maps_to_anonymous():
    store = InMemoryHistoryStore()
    await store.append(None, _record(1))
    await store.append("  ", _record(2))

    assert [r.amount for r in await store.list(ANONYMOUS_USER)] == [2.0, 1.0]
    assert resolve_user_id(None) == ANONYMOUS_USER
    assert resolve_user_id("carol") == "carol"


async def test_list_returns_a_copy():
    store = InMemoryHistoryStore()
    await store.append("alice", _record(1, "alice"))
    snapshot = await store.list("alice")
    snapshot.clear()
    assert len(await store.list("alice")) == 1


async def test_concurrent_appends_respect_cap():
    store = InMemoryHistoryStore(limit=5)
    await asyncio.gather(*(store.append("alice", _record(i, "alice")) for i in range(50)))
    assert len(await store.list("alice")) == 5


async def test_custom_limit_must_be_positive():
    with pytest.raises(ValueError):
        InMemoryHistoryStore(limit=0)


async def test_clear_does_not_accumulate_per_user_locks():
    store = InMemoryHistoryStore()
    for i in range(1000):
        await store.clear(f"stranger-{i}")
    await store.append("alice", _record(1, "alice"))
    await store.clear("alice")

    assert store._locks == {}
    assert await store.list("alice") == []
