"""
Liveness check for the local SOCKS reproxy listener.
"""

import asyncio
from collections.abc import Callable

import structlog

from proxy_control.config import ProxyControlConfig
from proxy_control.net.socks import AuthMethod, compose_auth_handshake, interpret_auth_response
from proxy_control.net.transport import Connection, TcpConnection

logger = structlog.get_logger(__name__)


class ReproxyValidator:
    """Verifies that a SOCKS5 server is listening on a local port."""

    def __init__(
        self,
        config: ProxyControlConfig,
        connection_factory: Callable[[str, int], Connection] = TcpConnection,
    ) -> None:
        """
        Args:
            config: Listener host and response timeout.
            connection_factory: Creates an unopened connection to (host, port).
        """
        self._config = config
        self._connection_factory = connection_factory

    async def check_reproxy(self, port: int) -> bool:
        """
        Send a SOCKS5 no-auth greeting to the local port and validate the reply.

        Returns:
            True if the connection, send, receive and parse all succeed;
            False on any failure.
        """
        connection = self._connection_factory(self._config.reproxy_host, port)
        try:
            await connection.connect()
            await connection.send(compose_auth_handshake([AuthMethod.NOAUTH]))
            response = await asyncio.wait_for(
                connection.receive_next(), self._config.reproxy_timeout
            )
            interpret_auth_response(response)
        except Exception as e:
            logger.info("Reproxy check failed", port=port, error_type=type(e).__name__)
            return False
        finally:
            await connection.close()

        logger.debug("Reproxy check succeeded", port=port)
        return True
