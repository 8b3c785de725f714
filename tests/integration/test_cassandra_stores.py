"""End-to-end store tests against a live Cassandra node."""

import pytest

from cassandra_store import KeyValueStore, PersistedGrant, PersistedGrantStore

pytestmark = pytest.mark.integration


async def test_kv_store_round_trip(cassandra):
    store = await KeyValueStore.open(cassandra, "kv_table1")
    await store.save("abc", {"id": "abc", "name": "test data"})
    assert await store.get("abc") == {"id": "abc", "name": "test data"}
    assert await store.get("missing") is None


async def test_kv_store_lists_all(cassandra):
    store = await KeyValueStore.open(cassandra, "kv_table3")
    for key in ("abc", "def", "ghi"):
        await store.save(key, {"id": key})
    assert sorted(v["id"] for v in await store.list()) == ["abc", "def", "ghi"]


async def test_kv_store_open_twice(cassandra):
    await KeyValueStore.open(cassandra, "kv_twice")
    store = await KeyValueStore.open(cassandra, "kv_twice")
    await store.save("a", {"v": 1})
    assert await store.get("a") == {"v": 1}


async def test_grants_filter_and_remove(cassandra):
    grants = await PersistedGrantStore.open(cassandra)
    await grants.store(PersistedGrant(key="666", subject_id="Some App", client_id="mt", type="User"))
    await grants.store(PersistedGrant(key="111", subject_id="Some App", client_id="mt", type="Admin"))
    await grants.store(PersistedGrant(key="456", subject_id="Some App", client_id="jp", type="User"))
    await grants.store(PersistedGrant(key="789", subject_id="Some Other App"))

    assert len(await grants.get_all("Some App")) == 3

    assert await grants.remove_all("Some App", "mt", "User") == 1
    assert sorted(g.key for g in await grants.get_all("Some App")) == ["111", "456"]

    assert await grants.remove_all("Some App", "mt") == 1
    assert [g.key for g in await grants.get_all("Some App")] == ["456"]


async def test_grants_open_twice(cassandra):
    await PersistedGrantStore.open(cassandra)
    grants = await PersistedGrantStore.open(cassandra)
    await grants.store(PersistedGrant(key="123"))
    assert (await grants.get("123")).key == "123"
