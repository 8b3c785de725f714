"""cassandra_store — key-value and grant persistence over Cassandra.

Stores are opened against an explicit session; opening provisions the
backing table, after which every operation is a single awaited call.
"""

from cassandra_store.codecs import Codec, JsonCodec, PydanticCodec
from cassandra_store.config import StoreSettings, open_session
from cassandra_store.exceptions import (
    DatastoreError,
    SchemaProvisioningError,
    SerializationError,
    StoreError,
)
from cassandra_store.grants import PersistedGrant, PersistedGrantStore
from cassandra_store.kv import KeyValueStore
from cassandra_store.sessions import CassandraSession, InMemorySession, Session, SQLiteSession

__all__ = [
    "CassandraSession",
    "Codec",
    "DatastoreError",
    "InMemorySession",
    "JsonCodec",
    "KeyValueStore",
    "PersistedGrant",
    "PersistedGrantStore",
    "PydanticCodec",
    "SQLiteSession",
    "SchemaProvisioningError",
    "SerializationError",
    "Session",
    "StoreError",
    "StoreSettings",
    "open_session",
]
