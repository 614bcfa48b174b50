"""Cancellable one-shot timer."""

import asyncio
from collections.abc import Callable


class ExclusiveTimer:
    """
    Holds at most one scheduled callback.

    Scheduling a new callback cancels the pending one first, so two
    callbacks are never pending at the same time.
    """

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """
        Schedule ``callback`` after ``delay`` seconds, replacing any pending one.

        Must be called from within a running event loop.
        """
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, callback)
        return self._handle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
