"""
Async HTTP client for connectivity checks and bug reports.
"""

import asyncio
from typing import Any

import httpx
import structlog

from proxy_control.config import ProxyControlConfig
from proxy_control.exceptions import OperationTimeoutError

logger = structlog.get_logger(__name__)


class AsyncHttpClient:
    """Async HTTP client wrapping a lazily created httpx.AsyncClient."""

    def __init__(
        self,
        config: ProxyControlConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration.
            transport: Optional transport for testing (mock transport).
        """
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def __aenter__(self) -> "AsyncHttpClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=self._config.http_timeout,
                    transport=self._transport,
                    headers={"User-Agent": self._config.user_agent},
                )
        return self._client

    async def close(self) -> None:
        async with self._client_lock:
            if self._client is None:
                logger.debug("Client not open.")
                return
            await self._client.aclose()
            self._client = None

    async def ping(self, url: str) -> bool:
        """
        Returns:
            True if the server answered with any HTTP response.
        """
        client = await self._ensure_client()
        try:
            await client.get(url)
        except httpx.HTTPError as e:
            logger.debug("Ping failed", error_type=type(e).__name__)
            return False
        return True

    async def ping_until_online(
        self,
        url: str,
        *,
        interval: float | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Ping ``url`` until it answers.

        Args:
            url: URL to GET.
            interval: Seconds between attempts; defaults to config.ping_interval.
            timeout: Give up after this many seconds; None waits forever.

        Raises:
            OperationTimeoutError: If ``timeout`` elapses first.
        """
        interval = self._config.ping_interval if interval is None else interval

        async def poll() -> None:
            while not await self.ping(url):
                await asyncio.sleep(interval)

        try:
            await asyncio.wait_for(poll(), timeout)
        except TimeoutError:
            msg = "Still offline"
            raise OperationTimeoutError(msg, timeout=timeout) from None
        logger.info("Online")

    async def post_report(self, path: str, payload: Any) -> None:
        """
        Post a JSON report through the fronting domain.

        Only the fronting domain is visible on the wire; the real host is
        sent in the encrypted Host header.

        Raises:
            httpx.HTTPError: If the request fails or returns an error status.
        """
        client = await self._ensure_client()
        response = await client.post(
            self._config.report_front_url + path.lstrip("/"),
            json=payload,
            headers={"Host": self._config.report_host},
        )
        response.raise_for_status()
        logger.debug("Report posted", status_code=response.status_code)
