"""Tests for KeyValueStore."""

from dataclasses import dataclass
from uuid import uuid1, uuid4

import pytest

from cassandra_store import (
    KeyValueStore,
    PydanticCodec,
    SchemaProvisioningError,
    SerializationError,
)
from cassandra_store.statements import Insert


@dataclass
class ClientRecord:
    id: str
    name: str
    scopes: list[str]


@pytest.fixture
async def store(session):
    return await KeyValueStore.open(session, "kv_table")


async def test_get_nonexistent(store):
    assert await store.get("nope") is None


async def test_save_and_get(store):
    await store.save("abc", {"id": "abc", "name": "test data"})
    assert await store.get("abc") == {"id": "abc", "name": "test data"}


async def test_overwrite_replaces_whole_value(store):
    await store.save("k", {"a": 1, "b": 2})
    await store.save("k", {"c": 3})
    assert await store.get("k") == {"c": 3}


async def test_save_is_idempotent(store):
    await store.save("k", {"v": 1})
    await store.save("k", {"v": 1})
    assert await store.list() == [{"v": 1}]


async def test_list_returns_every_value(store):
    for key in ("abc", "def", "ghi"):
        await store.save(key, {"id": key, "name": "test data"})

    values = await store.list()

    assert len(values) == 3
    assert sorted(v["id"] for v in values) == ["abc", "def", "ghi"]


async def test_list_empty(store):
    assert await store.list() == []


async def test_nested_values_round_trip(store):
    value = {"claims": [{"type": "role", "value": "admin"}], "meta": {"n": 1, "ok": True}}
    await store.save("nested", value)
    assert await store.get("nested") == value


async def test_pydantic_codec_round_trip(session):
    store = await KeyValueStore.open(session, "clients", PydanticCodec(ClientRecord))
    record = ClientRecord(id="web", name="Web App", scopes=["openid", "profile"])

    await store.save(record.id, record)

    assert await store.get("web") == record
    assert await store.list() == [record]


async def test_open_twice_is_idempotent(session):
    first = await KeyValueStore.open(session, "kv_twice")
    await first.save("a", {"v": 1})

    second = await KeyValueStore.open(session, "kv_twice")

    assert await second.get("a") == {"v": 1}
    await second.save("b", {"v": 2})
    assert await first.get("b") == {"v": 2}


async def test_stores_on_different_tables_are_isolated(session):
    one = await KeyValueStore.open(session, "kv_one")
    two = await KeyValueStore.open(session, "kv_two")
    await one.save("k", {"table": 1})
    await two.save("k", {"table": 2})
    assert await one.get("k") == {"table": 1}
    assert await two.get("k") == {"table": 2}


async def test_integer_keys(session):
    store = await KeyValueStore.open(session, "kv_int", key_type="bigint")
    await store.save(42, {"answer": True})
    assert await store.get(42) == {"answer": True}
    assert await store.get(7) is None


async def test_get_corrupt_payload_raises(session, store):
    await session.execute(Insert("kv_table", {"id": "bad", "data": "{not json"}))

    with pytest.raises(SerializationError) as exc_info:
        await store.get("bad")

    assert exc_info.value.key == "bad"


async def test_list_aborts_on_corrupt_row(session, store):
    await store.save("good", {"v": 1})
    await session.execute(Insert("kv_table", {"id": "bad", "data": "{not json"}))

    with pytest.raises(SerializationError) as exc_info:
        await store.list()

    assert exc_info.value.key == "bad"


async def test_save_unserializable_value_raises(store):
    with pytest.raises(SerializationError) as exc_info:
        await store.save("k", {"v": object()})
    assert exc_info.value.operation == "encode"
    assert await store.get("k") is None


async def test_incompatible_existing_table_fails_to_open(session):
    await KeyValueStore.open(session, "shared")
    with pytest.raises(SchemaProvisioningError) as exc_info:
        await KeyValueStore.open(session, "shared", key_type="bigint")
    assert exc_info.value.table == "shared"


async def test_invalid_table_name_rejected(session):
    with pytest.raises(ValueError):
        await KeyValueStore.open(session, "kv; DROP TABLE x")


async def test_invalid_key_type_rejected(session):
    with pytest.raises(ValueError):
        await KeyValueStore.open(session, "kv_bad", key_type="blob")


async def test_uuid_keys(session):
    store = await KeyValueStore.open(session, "kv_uuid", key_type="uuid")
    first, second = uuid4(), uuid4()

    await store.save(first, {"n": 1})
    await store.save(second, {"n": 2})

    assert await store.get(first) == {"n": 1}
    assert await store.get(uuid4()) is None
    assert sorted(v["n"] for v in await store.list()) == [1, 2]


async def test_uuid_key_in_corrupt_row_error(session):
    store = await KeyValueStore.open(session, "kv_uuid_bad", key_type="timeuuid")
    key = uuid1()
    await session.execute(Insert("kv_uuid_bad", {"id": key, "data": "{not json"}))

    with pytest.raises(SerializationError) as exc_info:
        await store.list()

    assert exc_info.value.key == key
