"""PersistedGrantStore — grant records with subject/client/type filtering.

Table layout::

    key text PRIMARY KEY,
    subject_id text, client_id text, type text,   -- secondary indexes
    payload text                                   -- full grant as JSON

The three filter columns are copies of the grant's attributes; the payload
is what gets read back, so fields the store does not know about survive a
round trip unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from cassandra_store.codecs import PydanticCodec
from cassandra_store.exceptions import SerializationError
from cassandra_store.kv import provision
from cassandra_store.sessions.base import Session
from cassandra_store.statements import Column, TableSchema

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "persisted_grants"


class PersistedGrant(BaseModel):
    """A stored authorization grant.

    Attributes:
        key:           Unique identifier of the grant.
        type:          Grant category (e.g. ``"authorization_code"``).
        subject_id:    Identity that owns the grant.
        client_id:     Client the grant was issued to.
        creation_time: When the grant was issued.
        expiration:    When the grant stops being valid.
        data:          Serialized grant body.

    Extra fields are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    key: str
    type: str | None = None
    subject_id: str | None = None
    client_id: str | None = None
    creation_time: datetime | None = None
    expiration: datetime | None = None
    data: str | None = None


def _require(name: str, value: str | None) -> str:
    if not value:
        raise ValueError(f"'{name}' is required")
    return value


class PersistedGrantStore:
    """Grant persistence with lookups by key and by owning subject.

    Use :meth:`open` rather than the constructor.

    Bulk removal scans for matching keys and then deletes them one by one.
    Deletes are not atomic across rows: if one fails, the ones already
    applied stay applied and the error is raised.
    """

    def __init__(self, session: Session, schema: TableSchema) -> None:
        self._session = session
        self._schema = schema
        self._codec: PydanticCodec[PersistedGrant] = PydanticCodec(PersistedGrant)

    @classmethod
    async def open(cls, session: Session, table: str = DEFAULT_TABLE) -> PersistedGrantStore:
        """Provision the grants table and its indexes, then return a store."""
        schema = TableSchema(
            name=table,
            columns=(
                Column("key"),
                Column("subject_id"),
                Column("client_id"),
                Column("type"),
                Column("payload"),
            ),
            primary_key="key",
            indexes=("subject_id", "client_id", "type"),
        )
        await provision(session, schema)
        return cls(session, schema)

    async def store(self, grant: PersistedGrant) -> None:
        """Create or replace the grant with ``grant.key``.

        Raises:
            SerializationError: An extra field cannot be encoded.
        """
        try:
            payload = self._codec.encode(grant)
        except (TypeError, ValueError) as exc:
            raise SerializationError(grant.key, "encode", str(exc)) from exc
        await self._session.execute(
            self._schema.insert(
                key=grant.key,
                subject_id=grant.subject_id,
                client_id=grant.client_id,
                type=grant.type,
                payload=payload,
            )
        )

    async def get(self, key: str) -> PersistedGrant | None:
        rows = await self._session.execute(self._schema.select("key", "payload", key=key))
        if not rows:
            return None
        return self._decode(rows[0]["key"], rows[0]["payload"])

    async def get_all(self, subject_id: str) -> list[PersistedGrant]:
        """Return every grant owned by *subject_id* (possibly none)."""
        if subject_id is None:
            raise ValueError("'subject_id' is required")
        where = {"subject_id": subject_id}
        rows = await self._session.execute(self._schema.select("key", "payload", **where))
        return [self._decode(row["key"], row["payload"]) for row in rows]

    async def remove(self, key: str) -> None:
        """Delete a grant.  No-op if the key does not exist."""
        await self._session.execute(self._schema.delete(key))

    async def remove_all(self, subject_id: str, client_id: str, type: str | None = None) -> int:
        """Delete every grant of *subject_id* issued to *client_id*.

        When *type* is given only grants of that type are removed; grants of
        the same subject and client with another type are kept.

        Returns:
            Number of grants deleted.

        Raises:
            ValueError: *subject_id* or *client_id* is empty.
            DatastoreError: A delete failed.  Every delete has finished by
                then; the other matched grants stay removed.
        """
        where = {
            "subject_id": _require("subject_id", subject_id),
            "client_id": _require("client_id", client_id),
        }
        if type is not None:
            where["type"] = type
        rows = await self._session.execute(self._schema.select("key", **where))
        keys = [row["key"] for row in rows]
        outcomes = await asyncio.gather(
            *(self._session.execute(self._schema.delete(k)) for k in keys),
            return_exceptions=True,
        )
        failures = [(k, o) for k, o in zip(keys, outcomes) if isinstance(o, BaseException)]
        if failures:
            for key, error in failures:
                logger.error("Failed to remove grant %r: %s", key, error)
            raise failures[0][1]
        logger.info(
            "Removed %d grant(s) from '%s' matching %s", len(keys), self._schema.name, where
        )
        return len(keys)

    def _decode(self, key: str, payload: str) -> PersistedGrant:
        try:
            return self._codec.decode(payload)
        except (TypeError, ValueError) as exc:
            logger.error("Corrupt grant payload for key %r: %s", key, exc)
            raise SerializationError(key, "decode", str(exc)) from exc
