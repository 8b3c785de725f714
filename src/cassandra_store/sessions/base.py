"""Session protocol — the datastore capability every store is built on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from cassandra_store.statements import Statement


class Session(ABC):
    """Abstract base for all datastore sessions.

    A session executes logical statements (see
    :mod:`cassandra_store.statements`) and returns rows as plain dicts keyed
    by column name.  Stores share no state besides the session they are
    given, so one session may back any number of stores concurrently.

    Backends wrap their own failures in
    :class:`~cassandra_store.exceptions.DatastoreError`.
    """

    @abstractmethod
    async def execute(self, statement: Statement) -> list[dict[str, Any]]:
        """Run *statement* and return every resulting row.

        Statements that produce no rows return an empty list.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the session."""
        return None

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
