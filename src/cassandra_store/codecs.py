"""Codecs — the encode/decode pair a store uses for its payload column."""

from __future__ import annotations

import json
from typing import Any, Generic, Protocol, TypeVar

from pydantic import TypeAdapter

T = TypeVar("T")


class Codec(Protocol[T]):
    """Turns a value into text and back.

    ``decode(encode(x)) == x`` must hold for every value the caller saves.
    Implementations signal bad input by raising ``ValueError`` or
    ``TypeError``; stores turn those into
    :class:`~cassandra_store.exceptions.SerializationError`.
    """

    def encode(self, value: T) -> str: ...

    def decode(self, data: str) -> T: ...


class JsonCodec:
    """Plain JSON for dicts, lists and scalars."""

    def __init__(self, *, sort_keys: bool = True) -> None:
        self._sort_keys = sort_keys

    def encode(self, value: Any) -> str:
        return json.dumps(value, sort_keys=self._sort_keys)

    def decode(self, data: str) -> Any:
        if not isinstance(data, str):
            raise TypeError(f"Expected a JSON string, got {type(data).__name__}")
        return json.loads(data)


class PydanticCodec(Generic[T]):
    """JSON through a pydantic ``TypeAdapter``.

    Works for models, dataclasses, typed dicts and containers of them, so the
    decoded value has the same type the caller saved.

    Example:
        codec = PydanticCodec(ClientRecord)
        store = await KeyValueStore.open(session, "clients", codec)
    """

    def __init__(self, type_: type[T] | Any) -> None:
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def encode(self, value: T) -> str:
        return self._adapter.dump_json(value).decode("utf-8")

    def decode(self, data: str) -> T:
        return self._adapter.validate_json(data)
