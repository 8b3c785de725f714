"""KeyValueStore — generic two-column envelope store.

Each row pairs a primitive key with the codec-encoded payload of a value::

    CREATE TABLE IF NOT EXISTS <table> (id text, data text, PRIMARY KEY (id))

The store knows nothing about the payload's structure; the injected
:class:`~cassandra_store.codecs.Codec` does all the (de)serialization.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from cassandra_store.codecs import Codec, JsonCodec
from cassandra_store.exceptions import DatastoreError, SchemaProvisioningError, SerializationError
from cassandra_store.sessions.base import Session
from cassandra_store.statements import Column, TableSchema

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")

KEY_TYPES = frozenset({"text", "ascii", "varchar", "int", "bigint", "uuid", "timeuuid"})


async def provision(session: Session, schema: TableSchema) -> None:
    """Create *schema*'s table and indexes if they do not exist yet.

    Raises:
        SchemaProvisioningError: The datastore rejected a statement.
    """
    for statement in schema.provision():
        try:
            await session.execute(statement)
        except DatastoreError as exc:
            logger.error("Provisioning table '%s' failed: %s", schema.name, exc)
            raise SchemaProvisioningError(schema.name, str(exc)) from exc
    logger.debug("Provisioned table '%s'", schema.name)


class KeyValueStore(Generic[K, T]):
    """Stores values of type ``T`` under keys of type ``K``.

    Use :meth:`open` rather than the constructor; it provisions the table
    before handing out a store.

    Saving replaces the whole payload of an existing key.  Nothing expires
    and nothing is cached: every call goes to the session.
    """

    def __init__(self, session: Session, schema: TableSchema, codec: Codec[T]) -> None:
        self._session = session
        self._schema = schema
        self._codec = codec

    @classmethod
    async def open(
        cls,
        session: Session,
        table: str,
        codec: Codec[T] | None = None,
        key_type: str = "text",
    ) -> KeyValueStore[K, T]:
        """Provision *table* and return a store bound to it.

        Args:
            session:  Session the store executes through.
            table:    Table name; created if missing.
            codec:    Payload codec.  Defaults to :class:`JsonCodec`.
            key_type: CQL type of the ``id`` column.

        Raises:
            ValueError: Invalid table name or key type.
            SchemaProvisioningError: The table could not be created.
        """
        if key_type not in KEY_TYPES:
            raise ValueError(f"Unsupported key type {key_type!r}; expected one of {sorted(KEY_TYPES)}")
        schema = TableSchema(
            name=table,
            columns=(Column("id", key_type), Column("data", "text")),
            primary_key="id",
        )
        await provision(session, schema)
        return cls(session, schema, codec or JsonCodec())

    async def get(self, key: K) -> T | None:
        """Return the value saved under *key*, or ``None`` if there is none.

        Raises:
            SerializationError: The stored payload cannot be decoded.
        """
        rows = await self._session.execute(self._schema.select("id", "data", id=key))
        if not rows:
            return None
        return self._decode(key, rows[0]["data"])

    async def list(self) -> list[T]:
        """Return every stored value, in no particular order.

        A single undecodable row fails the whole call; the error names its key.
        """
        rows = await self._session.execute(self._schema.select("id", "data"))
        return [self._decode(row["id"], row["data"]) for row in rows]

    async def save(self, key: K, value: T) -> None:
        """Create or overwrite the value under *key*."""
        try:
            data = self._codec.encode(value)
        except (TypeError, ValueError) as exc:
            raise SerializationError(key, "encode", str(exc)) from exc
        await self._session.execute(self._schema.insert(id=key, data=data))

    def _decode(self, key: Any, data: str) -> T:
        try:
            return self._codec.decode(data)
        except (TypeError, ValueError) as exc:
            logger.error("Corrupt payload for key %r in '%s': %s", key, self._schema.name, exc)
            raise SerializationError(key, "decode", str(exc)) from exc
