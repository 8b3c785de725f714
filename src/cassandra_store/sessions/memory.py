"""InMemorySession — zero-config, dict-backed session for development and testing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from cassandra_store.exceptions import DatastoreError
from cassandra_store.sessions.base import Session
from cassandra_store.statements import (
    Column,
    CreateIndex,
    CreateTable,
    Delete,
    Insert,
    Select,
    Statement,
)

logger = logging.getLogger(__name__)


@dataclass
class _Table:
    columns: tuple[Column, ...]
    primary_key: str
    rows: dict[Any, dict[str, Any]] = field(default_factory=dict)


class InMemorySession(Session):
    """In-memory tables using nested dicts.  Data is lost on process exit.

    Mirrors the Cassandra behaviour the stores rely on: inserts replace the
    whole row, filters are exact equality and never match null, deletes go
    through the primary key.
    """

    def __init__(self) -> None:
        self._tables: dict[str, _Table] = {}

    async def execute(self, statement: Statement) -> list[dict[str, Any]]:
        logger.debug("memory execute: %r", statement)
        if isinstance(statement, CreateTable):
            self._create_table(statement)
            return []
        if isinstance(statement, CreateIndex):
            self._table(statement.table, "create index")
            return []
        if isinstance(statement, Insert):
            table = self._table(statement.table, "insert")
            if statement.values.get(table.primary_key) is None:
                raise DatastoreError("insert", f"missing primary key '{table.primary_key}'")
            row = {c.name: None for c in table.columns}
            row.update(statement.values)
            table.rows[row[table.primary_key]] = row
            return []
        if isinstance(statement, Select):
            table = self._table(statement.table, "select")
            return [
                {c: row.get(c) for c in statement.columns}
                for row in table.rows.values()
                if _matches(row, statement.where)
            ]
        if isinstance(statement, Delete):
            table = self._table(statement.table, "delete")
            if set(statement.where) != {table.primary_key}:
                raise DatastoreError("delete", "deletes must filter on the primary key only")
            table.rows.pop(statement.where[table.primary_key], None)
            return []
        raise TypeError(f"Unsupported statement: {statement!r}")

    def _create_table(self, statement: CreateTable) -> None:
        existing = self._tables.get(statement.table)
        if existing is None:
            self._tables[statement.table] = _Table(statement.columns, statement.primary_key)
            return
        if existing.columns != statement.columns or existing.primary_key != statement.primary_key:
            raise DatastoreError(
                "create table",
                f"table '{statement.table}' already exists with a different schema",
            )

    def _table(self, name: str, operation: str) -> _Table:
        try:
            return self._tables[name]
        except KeyError:
            raise DatastoreError(operation, f"unconfigured table '{name}'") from None


def _matches(row: dict[str, Any], where: dict[str, Any]) -> bool:
    return all(row.get(column) is not None and row.get(column) == value for column, value in where.items())
