"""Live Cassandra fixtures.  Each test gets its own throwaway keyspace."""

import asyncio
import os
import re

import pytest
from cassandra.cluster import Cluster

from cassandra_store import CassandraSession, StoreSettings

HOST = os.environ.get("CASSANDRA_STORE_TEST_HOST")


def _drop_keyspace(keyspace):
    cluster = Cluster(contact_points=[HOST])
    try:
        cluster.connect().execute(f"DROP KEYSPACE IF EXISTS {keyspace}")
    finally:
        cluster.shutdown()


@pytest.fixture
async def cassandra(request):
    if not HOST:
        pytest.skip("CASSANDRA_STORE_TEST_HOST not set")
    keyspace = re.sub(r"\W", "_", f"it_{request.node.name}")[:48]
    settings = StoreSettings(
        _env_file=None,
        backend="cassandra",
        contact_points=[HOST],
        keyspace=keyspace,
    )
    session = await CassandraSession.connect(settings)
    yield session
    await session.close()
    await asyncio.to_thread(_drop_keyspace, keyspace)
