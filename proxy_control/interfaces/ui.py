"""UI notifier and log source protocols."""

from typing import Any, Protocol, runtime_checkable

from proxy_control.models.ui import Update


@runtime_checkable
class UiNotifier(Protocol):
    """Receives update events for the UI."""

    def update(self, update: Update, data: Any = None) -> None: ...


@runtime_checkable
class LogSource(Protocol):
    """Source of buffered log lines for diagnostics."""

    async def get_logs(self) -> list[str]: ...
