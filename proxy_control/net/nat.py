"""NAT classification using STUN.

Wraps the RFC 3489 tests provided by
[pystun3](https://github.com/talkiq/pystun3).
"""

import asyncio
import socket
from collections.abc import Sequence

import stun
import structlog

logger = structlog.get_logger(__name__)

_DEFAULT_STUN_PORT = 3478

_NAT_NAMES = {
    stun.OpenInternet: "Open Internet (No NAT)",
    stun.FullCone: "Full-cone NAT",
    stun.SymmetricUDPFirewall: "Symmetric UDP Firewall NAT",
    stun.RestricNAT: "Restricted-cone NAT",
    stun.RestricPortNAT: "Port Restricted-cone NAT",
    stun.SymmetricNAT: "Symmetric NAT",
}


def parse_stun_url(url: str) -> tuple[str, int]:
    """
    Split ``stun:host[:port]`` (or a bare ``host[:port]``) into host and port.

    Raises:
        ValueError: If the host is empty or the port is not a number.
    """
    address = url.removeprefix("stun:")
    host, _, port = address.partition(":")
    if not host:
        msg = f"Invalid STUN server: {url}"
        raise ValueError(msg)
    return host, int(port) if port else _DEFAULT_STUN_PORT


class StunNatProbe:
    """
    NatProbe backed by STUN servers.

    The server list is read at probe time, so passing the live settings
    list makes the probe follow settings updates.
    """

    def __init__(
        self,
        stun_servers: Sequence[str],
        *,
        source_ip: str = "0.0.0.0",
        source_port: int = 54320,
        socket_timeout: float = 2.0,
    ) -> None:
        self._stun_servers = stun_servers
        self._source_ip = source_ip
        self._source_port = source_port
        self._socket_timeout = socket_timeout

    async def probe(self) -> str:
        """
        Raises:
            RuntimeError: If no STUN server gave a usable answer.
        """
        return await asyncio.to_thread(self._classify)

    def _classify(self) -> str:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.settimeout(self._socket_timeout)
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self._source_ip, self._source_port))

            for server in list(self._stun_servers):
                try:
                    host, port = parse_stun_url(server)
                except ValueError:
                    logger.warning("Skipping invalid STUN server", server=server)
                    continue

                nat_type, _ = stun.get_nat_type(
                    s, self._source_ip, self._source_port, stun_host=host, stun_port=port
                )
                if nat_type in _NAT_NAMES:
                    return _NAT_NAMES[nat_type]
                logger.debug("STUN server gave no classification", server=server, result=nat_type)

        msg = "No STUN servers returned a valid response"
        raise RuntimeError(msg)
