"""Typed event channels with explicit unsubscribe."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, Self, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class InstallerEventKind(StrEnum):
    STATUS = "status"
    PROGRESS = "progress"


@dataclass(frozen=True, slots=True)
class InstallerEvent:
    """Status (opaque code) or progress (0-100) notification from an installer."""

    kind: InstallerEventKind
    value: int | float | str


class Subscription:
    """
    Handle returned by EventChannel.subscribe.

    Usable as a context manager; unsubscribing twice is a no-op.
    """

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._unsubscribe()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.unsubscribe()


class EventChannel(Generic[T]):
    """
    Synchronous fan-out of events to listeners.

    A listener that raises is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        self._listeners.append(listener)
        return Subscription(lambda: self._listeners.remove(listener))

    def emit(self, event: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning("Event listener failed", error_type=type(e).__name__, exc_info=e)

    def __len__(self) -> int:
        return len(self._listeners)
