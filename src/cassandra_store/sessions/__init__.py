"""Datastore sessions the stores execute their statements through."""

from cassandra_store.sessions.base import Session
from cassandra_store.sessions.cassandra import CassandraSession
from cassandra_store.sessions.memory import InMemorySession
from cassandra_store.sessions.sqlite import SQLiteSession

__all__ = ["CassandraSession", "InMemorySession", "SQLiteSession", "Session"]
