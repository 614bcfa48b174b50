"""Minimal TCP connection over asyncio streams."""

import asyncio
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)

_READ_SIZE = 64 * 1024


@runtime_checkable
class Connection(Protocol):
    """Message-oriented view of a stream connection."""

    async def connect(self) -> None: ...

    async def send(self, data: bytes) -> None: ...

    async def receive_next(self) -> bytes: ...

    async def close(self) -> None: ...


class TcpConnection:
    """TCP client connection to ``host:port``."""

    def __init__(self, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_connected(self) -> bool:
        return self._writer is not None

    async def connect(self) -> None:
        """
        Raises:
            OSError: If the connection is refused or fails.
        """
        self._reader, self._writer = await asyncio.open_connection(self._host, self._port)
        logger.debug("Connected", host=self._host, port=self._port)

    async def send(self, data: bytes) -> None:
        if self._writer is None:
            msg = "Connection not open"
            raise ConnectionError(msg)
        self._writer.write(data)
        await self._writer.drain()

    async def receive_next(self) -> bytes:
        """
        Return the next chunk of data as it arrives.

        Raises:
            ConnectionError: If the peer closed the connection.
        """
        if self._reader is None:
            msg = "Connection not open"
            raise ConnectionError(msg)
        data = await self._reader.read(_READ_SIZE)
        if not data:
            msg = "Connection closed by peer"
            raise ConnectionError(msg)
        return data

    async def close(self) -> None:
        """Close the connection. No-op if it was never opened or already closed."""
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug("Error while closing connection", error_type=type(e).__name__)
