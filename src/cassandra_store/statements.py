"""Logical statements issued against a session, and their CQL rendering.

Stores never build query strings themselves.  They describe what they want
with the small statement types below and each session renders them into its
own dialect.  :func:`to_cql` is the Cassandra rendering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Union

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,47}$")


def validate_identifier(name: str) -> str:
    """Return *name* unchanged if it is a safe unquoted table/column name.

    Table names are interpolated into statements, so anything outside
    ``[A-Za-z][A-Za-z0-9_]*`` (max 48 chars, Cassandra's limit) is rejected.
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name


@dataclass(frozen=True)
class Column:
    name: str
    type: str = "text"


@dataclass(frozen=True)
class CreateTable:
    table: str
    columns: tuple[Column, ...]
    primary_key: str


@dataclass(frozen=True)
class CreateIndex:
    table: str
    column: str

    @property
    def name(self) -> str:
        return f"{self.table}_{self.column}_idx"


@dataclass(frozen=True)
class Insert:
    """Upsert of a full row.  Columns left out are written as null."""

    table: str
    values: dict[str, Any]


@dataclass(frozen=True)
class Select:
    """Equality-filtered read.  An empty ``where`` is a full table scan."""

    table: str
    columns: tuple[str, ...]
    where: dict[str, Any] = field(default_factory=dict)
    allow_filtering: bool = False


@dataclass(frozen=True)
class Delete:
    """Delete by primary key."""

    table: str
    where: dict[str, Any]


Statement = Union[CreateTable, CreateIndex, Insert, Select, Delete]


@dataclass(frozen=True)
class TableSchema:
    """Builds the statements for one table.

    Attributes:
        name:        Table name (validated).
        columns:     Column definitions, primary key included.
        primary_key: Name of the partition key column.
        indexes:     Columns that get a secondary index.
    """

    name: str
    columns: tuple[Column, ...]
    primary_key: str
    indexes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_identifier(self.name)
        names = [c.name for c in self.columns]
        for column in names:
            validate_identifier(column)
        if self.primary_key not in names:
            raise ValueError(f"Primary key '{self.primary_key}' is not a column of '{self.name}'")
        for column in self.indexes:
            if column not in names:
                raise ValueError(f"Indexed column '{column}' is not a column of '{self.name}'")

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def provision(self) -> list[Statement]:
        statements: list[Statement] = [CreateTable(self.name, self.columns, self.primary_key)]
        statements.extend(CreateIndex(self.name, column) for column in self.indexes)
        return statements

    def insert(self, **values: Any) -> Insert:
        unknown = set(values) - set(self.column_names)
        if unknown:
            raise ValueError(f"Unknown columns for '{self.name}': {sorted(unknown)}")
        return Insert(self.name, dict(values))

    def select(self, *columns: str, **where: Any) -> Select:
        return Select(
            self.name,
            columns or self.column_names,
            where,
            allow_filtering=any(c != self.primary_key for c in where),
        )

    def delete(self, key: Any) -> Delete:
        return Delete(self.name, {self.primary_key: key})


# ── CQL rendering ────────────────────────────────────────────


def _where_clause(where: dict[str, Any]) -> str:
    return " AND ".join(f"{column} = %s" for column in where)


def to_cql(statement: Statement) -> tuple[str, tuple[Any, ...]]:
    """Render *statement* as a CQL string with ``%s`` placeholders."""
    if isinstance(statement, CreateTable):
        columns = ", ".join(f"{c.name} {c.type}" for c in statement.columns)
        return (
            f"CREATE TABLE IF NOT EXISTS {statement.table} "
            f"({columns}, PRIMARY KEY ({statement.primary_key}))",
            (),
        )
    if isinstance(statement, CreateIndex):
        return (
            f"CREATE INDEX IF NOT EXISTS {statement.name} "
            f"ON {statement.table} ({statement.column})",
            (),
        )
    if isinstance(statement, Insert):
        columns = ", ".join(statement.values)
        placeholders = ", ".join("%s" for _ in statement.values)
        return (
            f"INSERT INTO {statement.table} ({columns}) VALUES ({placeholders})",
            tuple(statement.values.values()),
        )
    if isinstance(statement, Select):
        query = f"SELECT {', '.join(statement.columns)} FROM {statement.table}"
        if statement.where:
            query += f" WHERE {_where_clause(statement.where)}"
            if statement.allow_filtering:
                query += " ALLOW FILTERING"
        return query, tuple(statement.where.values())
    if isinstance(statement, Delete):
        return (
            f"DELETE FROM {statement.table} WHERE {_where_clause(statement.where)}",
            tuple(statement.where.values()),
        )
    raise TypeError(f"Unsupported statement: {statement!r}")
