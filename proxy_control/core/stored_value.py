"""Typed value persisted under a single storage key."""

import asyncio
import copy
from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from proxy_control.interfaces.storage import Storage

T = TypeVar("T")


class StoredValue(Generic[T]):
    """
    A value persisted under ``key``, falling back to ``default`` when absent.

    ``update`` serializes read-modify-write cycles so concurrent callers do
    not lose each other's changes.
    """

    def __init__(self, storage: "Storage", key: str, default: T) -> None:
        self._storage = storage
        self._key = key
        self._default = default
        self._lock = asyncio.Lock()

    async def get(self) -> T:
        value = await self._storage.get(self._key)
        if value is None:
            return copy.deepcopy(self._default)
        return value

    async def set(self, value: T) -> None:
        async with self._lock:
            await self._storage.set(self._key, value)

    async def update(self, change: Callable[[T], T]) -> T:
        """
        Apply ``change`` to the current value and persist the result.

        Returns:
            The new value.
        """
        async with self._lock:
            value = change(await self.get())
            await self._storage.set(self._key, value)
            return value
