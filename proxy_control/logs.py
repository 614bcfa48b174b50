"""
Logging setup.

Every event is rendered to the console (filtered by the console level) and,
regardless of that level, appended as a compact JSON line to a bounded
buffer that diagnostics exports read from.
"""

import json
import logging
from collections import deque
from collections.abc import MutableMapping
from typing import Any

import structlog

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def level_from_name(name: str) -> int:
    """
    Raises:
        ValueError: If ``name`` is not a known level.
    """
    try:
        return _LEVELS[name.lower()]
    except KeyError:
        msg = f"Unknown log level: {name}"
        raise ValueError(msg) from None


class LogBuffer:
    """Bounded in-memory buffer of rendered log lines."""

    def __init__(self, max_lines: int = 10000) -> None:
        self._lines: deque[str] = deque(maxlen=max_lines)

    def append(self, line: str) -> None:
        self._lines.append(line)

    async def get_logs(self) -> list[str]:
        return list(self._lines)

    def clear(self) -> None:
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)


class BufferProcessor:
    """Appends each event to a LogBuffer as a JSON line; passes the event on unchanged."""

    def __init__(self, buffer: LogBuffer) -> None:
        self._buffer = buffer

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        rendered = structlog.processors.format_exc_info(logger, method_name, dict(event_dict))
        self._buffer.append(json.dumps(rendered, default=str, separators=(",", ":")))
        return event_dict


class ConsoleLevelFilter:
    """Drops events below a level that can be changed at runtime."""

    def __init__(self, level: int = logging.WARNING) -> None:
        self.level = level

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        if level_from_name(event_dict.get("level", "info")) < self.level:
            raise structlog.DropEvent
        return event_dict


_console_filter = ConsoleLevelFilter()


def configure_logging(buffer: LogBuffer, console_level: str = "warning") -> None:
    """Install the processor chain. Call once at startup."""
    set_console_level(console_level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            BufferProcessor(buffer),
            _console_filter,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def set_console_level(level: str) -> None:
    _console_filter.level = level_from_name(level)
