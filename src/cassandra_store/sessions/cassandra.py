"""CassandraSession — asyncio wrapper around a cassandra-driver session."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from cassandra import DriverException, OperationTimedOut
from cassandra.cluster import Cluster, NoHostAvailable
from cassandra.cluster import Session as DriverSession
from cassandra.connection import ConnectionException
from cassandra.query import SimpleStatement

from cassandra_store.exceptions import DatastoreError
from cassandra_store.sessions.base import Session
from cassandra_store.statements import Statement, to_cql, validate_identifier

if TYPE_CHECKING:
    from cassandra_store.config import StoreSettings

logger = logging.getLogger(__name__)

_DRIVER_ERRORS = (DriverException, NoHostAvailable, OperationTimedOut, ConnectionException)


def _row_to_dict(row: Any) -> dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    # default named_tuple_factory rows
    return dict(row._asdict())


class CassandraSession(Session):
    """Runs statements through cassandra-driver without blocking the event loop.

    ``execute_async`` callbacks fire on driver threads; they are handed back
    to the running loop and every result page is fetched before returning.

    Parameters:
        session:    A connected driver session, keyspace already set.
        fetch_size: Rows requested per page.
        cluster:    The owning cluster, shut down by :meth:`close` when given.
    """

    def __init__(
        self,
        session: DriverSession,
        fetch_size: int = 5000,
        cluster: Cluster | None = None,
    ) -> None:
        self._session = session
        self._fetch_size = fetch_size
        self._cluster = cluster

    @classmethod
    async def connect(cls, settings: StoreSettings) -> CassandraSession:
        """Connect to the cluster described by *settings* and bind its keyspace.

        Creates the keyspace first when ``settings.create_keyspace`` is set.
        """
        keyspace = validate_identifier(settings.keyspace)
        cluster = Cluster(contact_points=list(settings.contact_points), port=settings.port)
        try:
            driver_session = await asyncio.to_thread(cluster.connect)
            driver_session.default_timeout = settings.request_timeout
            session = cls(driver_session, fetch_size=settings.fetch_size, cluster=cluster)
            if settings.create_keyspace:
                await session._run(
                    f"CREATE KEYSPACE IF NOT EXISTS {keyspace} WITH REPLICATION = "
                    f"{{'class': 'SimpleStrategy', 'replication_factor': {settings.replication_factor}}}",
                    (),
                )
            await asyncio.to_thread(driver_session.set_keyspace, keyspace)
        except _DRIVER_ERRORS as exc:
            await asyncio.to_thread(cluster.shutdown)
            logger.error("Failed to connect to Cassandra at %s: %s", settings.contact_points, exc)
            raise DatastoreError("connect", str(exc)) from exc
        except BaseException:
            await asyncio.to_thread(cluster.shutdown)
            raise
        logger.info("Connected to Cassandra keyspace '%s'", keyspace)
        return session

    async def close(self) -> None:
        if self._cluster is not None:
            await asyncio.to_thread(self._cluster.shutdown)
            self._cluster = None
            logger.info("Cassandra cluster connection closed")

    # ── Session protocol ─────────────────────────────────────

    async def execute(self, statement: Statement) -> list[dict[str, Any]]:
        query, params = to_cql(statement)
        logger.debug("cql execute: %s %r", query, params)
        try:
            return await self._run(query, params)
        except _DRIVER_ERRORS as exc:
            logger.error("CQL statement failed: %s: %s", query, exc)
            raise DatastoreError(type(statement).__name__.lower(), str(exc)) from exc

    async def _run(self, query: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        loop = asyncio.get_running_loop()
        pages: asyncio.Queue[tuple[Any, BaseException | None]] = asyncio.Queue()

        def on_page(rows: Any) -> None:
            loop.call_soon_threadsafe(pages.put_nowait, (rows, None))

        def on_error(exc: BaseException) -> None:
            loop.call_soon_threadsafe(pages.put_nowait, (None, exc))

        future = self._session.execute_async(
            SimpleStatement(query, fetch_size=self._fetch_size),
            params or None,
        )
        # callbacks stay registered and fire once per page
        future.add_callbacks(callback=on_page, errback=on_error)

        results: list[dict[str, Any]] = []
        while True:
            rows, error = await pages.get()
            if error is not None:
                raise error
            results.extend(_row_to_dict(row) for row in rows or ())
            if not future.has_more_pages:
                return results
            future.start_fetching_next_page()
