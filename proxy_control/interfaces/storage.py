"""Persistent key/value storage protocol."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Storage(Protocol):
    """
    Durable key/value store.

    Values are JSON-compatible. ``get`` returns None for missing keys.
    """

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...
