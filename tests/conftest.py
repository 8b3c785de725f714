"""Shared test fixtures."""

import pytest

from cassandra_store import InMemorySession, SQLiteSession


@pytest.fixture(params=["memory", "sqlite"])
async def session(request):
    """Every store test runs once per local backend."""
    if request.param == "sqlite":
        s = SQLiteSession(":memory:")
    else:
        s = InMemorySession()
    yield s
    await s.close()


@pytest.fixture
def memory_session():
    return InMemorySession()
