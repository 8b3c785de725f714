"""Configuration loading for cassandra_store.

Settings come from ``CASSANDRA_STORE_*`` environment variables or a ``.env``
file and choose which session backend :func:`open_session` builds.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cassandra_store.sessions import CassandraSession, InMemorySession, Session, SQLiteSession
from cassandra_store.statements import validate_identifier


class StoreSettings(BaseSettings):
    """Session configuration.

    Attributes:
        backend:            ``"memory"``, ``"sqlite"`` or ``"cassandra"``.
        sqlite_path:        Database file for the sqlite backend.
        contact_points:     Cassandra hosts (JSON list in the environment).
        port:               Cassandra native protocol port.
        keyspace:           Keyspace the stores' tables live in.
        replication_factor: Used only when the keyspace is created.
        create_keyspace:    Create the keyspace on connect if missing.
        request_timeout:    Per-request timeout in seconds.
        fetch_size:         Rows per result page.
    """

    model_config = SettingsConfigDict(
        env_prefix="CASSANDRA_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    backend: Literal["memory", "sqlite", "cassandra"] = "memory"
    sqlite_path: str = ""
    contact_points: list[str] = Field(default_factory=lambda: ["localhost"])
    port: int = Field(default=9042, ge=1, le=65535)
    keyspace: str = "identity"
    replication_factor: int = Field(default=1, ge=1)
    create_keyspace: bool = True
    request_timeout: float = Field(default=10.0, gt=0)
    fetch_size: int = Field(default=5000, ge=1)

    @field_validator("keyspace")
    @classmethod
    def validate_keyspace(cls, v: str) -> str:
        return validate_identifier(v)

    @field_validator("contact_points")
    @classmethod
    def validate_contact_points(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("contact_points must not be empty")
        return v


async def open_session(settings: StoreSettings | None = None) -> Session:
    """Create the session selected by *settings* (read from the environment if omitted).

    Raises:
        ValueError: The sqlite backend is selected without ``sqlite_path``.
        DatastoreError: The Cassandra cluster cannot be reached.
    """
    settings = settings or StoreSettings()
    if settings.backend == "sqlite":
        if not settings.sqlite_path:
            raise ValueError("SQLite backend requires 'sqlite_path' configuration")
        return SQLiteSession(settings.sqlite_path)
    if settings.backend == "cassandra":
        return await CassandraSession.connect(settings)
    return InMemorySession()
