"""Custom exceptions for the cassandra_store package."""

from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base exception for all store-related errors."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class DatastoreError(StoreError):
    """Raised when the backing datastore rejects or fails a statement.

    The driver exception is always chained as ``__cause__``.  Nothing in this
    package retries; retry policy belongs to the caller.
    """


class SchemaProvisioningError(StoreError):
    """Raised when a table cannot be provisioned while opening a store."""

    def __init__(self, table: str, detail: str = "") -> None:
        self.table = table
        super().__init__("provision", f"table '{table}'" + (f": {detail}" if detail else ""))


class SerializationError(StoreError):
    """Raised when a payload cannot be encoded or decoded."""

    def __init__(self, key: Any, operation: str = "decode", detail: str = "") -> None:
        self.key = key
        super().__init__(operation, f"key {key!r}" + (f": {detail}" if detail else ""))
