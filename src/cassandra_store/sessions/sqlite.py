"""SQLiteSession — durable, single-file session backend using aiosqlite."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import uuid
from typing import Any

import aiosqlite

from cassandra_store.exceptions import DatastoreError
from cassandra_store.sessions.base import Session
from cassandra_store.statements import (
    CreateIndex,
    CreateTable,
    Delete,
    Insert,
    Select,
    Statement,
)

logger = logging.getLogger(__name__)

_SQL_TYPES = {
    "int": "INTEGER",
    "bigint": "INTEGER",
    "smallint": "INTEGER",
    "boolean": "INTEGER",
    "double": "REAL",
    "float": "REAL",
}

_UUID_TYPES = frozenset({"uuid", "timeuuid"})


def _bind(values: Any) -> tuple[Any, ...]:
    # sqlite3 cannot bind UUID objects; they are stored as their text form
    return tuple(str(v) if isinstance(v, uuid.UUID) else v for v in values)


def to_sql(statement: Statement) -> tuple[str, tuple[Any, ...]]:
    """Render *statement* as SQLite SQL with ``?`` placeholders."""
    if isinstance(statement, CreateTable):
        columns = ", ".join(f"{c.name} {_SQL_TYPES.get(c.type, 'TEXT')}" for c in statement.columns)
        return (
            f"CREATE TABLE IF NOT EXISTS {statement.table} "
            f"({columns}, PRIMARY KEY ({statement.primary_key}))",
            (),
        )
    if isinstance(statement, CreateIndex):
        return (
            f"CREATE INDEX IF NOT EXISTS {statement.name} ON {statement.table} ({statement.column})",
            (),
        )
    if isinstance(statement, Insert):
        columns = ", ".join(statement.values)
        placeholders = ", ".join("?" for _ in statement.values)
        return (
            f"INSERT OR REPLACE INTO {statement.table} ({columns}) VALUES ({placeholders})",
            _bind(statement.values.values()),
        )
    if isinstance(statement, Select):
        query = f"SELECT {', '.join(statement.columns)} FROM {statement.table}"
        if statement.where:
            query += " WHERE " + " AND ".join(f"{c} = ?" for c in statement.where)
        return query, _bind(statement.where.values())
    if isinstance(statement, Delete):
        return (
            f"DELETE FROM {statement.table} WHERE "
            + " AND ".join(f"{c} = ?" for c in statement.where),
            _bind(statement.where.values()),
        )
    raise TypeError(f"Unsupported statement: {statement!r}")


class SQLiteSession(Session):
    """Persistent session backed by a single SQLite file.

    Useful for running the stores on one machine without a Cassandra node.

    Parameters:
        db_path: Path to the SQLite database file.  Use ``":memory:"``
                 for an in-memory database (useful for testing).
    """

    def __init__(self, db_path: str = "cassandra_store.db") -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()
        # table -> columns declared uuid/timeuuid, converted back on read
        self._uuid_columns: dict[str, frozenset[str]] = {}

    async def _connect(self) -> aiosqlite.Connection:
        async with self._connect_lock:
            if self._db is None:
                self._db = await aiosqlite.connect(self._db_path)
                self._db.row_factory = aiosqlite.Row
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # ── Session protocol ─────────────────────────────────────

    async def execute(self, statement: Statement) -> list[dict[str, Any]]:
        query, params = to_sql(statement)
        logger.debug("sqlite execute: %s %r", query, params)
        db = await self._connect()
        try:
            cursor = await db.execute(query, params)
            if isinstance(statement, Select):
                rows = await cursor.fetchall()
                uuid_columns = self._uuid_columns.get(statement.table, frozenset())
                return [
                    {
                        key: uuid.UUID(row[key]) if key in uuid_columns and row[key] is not None else row[key]
                        for key in row.keys()
                    }
                    for row in rows
                ]
            await db.commit()
            if isinstance(statement, CreateTable):
                await self._check_schema(db, statement)
                self._uuid_columns[statement.table] = frozenset(
                    c.name for c in statement.columns if c.type in _UUID_TYPES
                )
        except sqlite3.Error as exc:
            logger.error("SQLite statement failed: %s: %s", query, exc)
            raise DatastoreError(type(statement).__name__.lower(), str(exc)) from exc
        return []

    async def _check_schema(self, db: aiosqlite.Connection, statement: CreateTable) -> None:
        cursor = await db.execute(f"PRAGMA table_info({statement.table})")
        existing = [(row["name"], row["type"].upper()) for row in await cursor.fetchall()]
        expected = [(c.name, _SQL_TYPES.get(c.type, "TEXT")) for c in statement.columns]
        if existing != expected:
            raise DatastoreError(
                "createtable",
                f"table '{statement.table}' already exists with columns {existing}",
            )
