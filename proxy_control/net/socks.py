"""
SOCKS5 authentication handshake (RFC 1928, section 3).

Only the method-selection exchange is implemented; it is enough to tell
whether a SOCKS5 server is listening.
"""

from collections.abc import Sequence
from enum import IntEnum

from proxy_control.exceptions import ProtocolError

SOCKS_VERSION = 0x05


class AuthMethod(IntEnum):
    """SOCKS5 authentication methods."""

    NOAUTH = 0x00
    GSSAPI = 0x01
    USERPASS = 0x02
    NONE_ACCEPTABLE = 0xFF


def compose_auth_handshake(methods: Sequence[AuthMethod]) -> bytes:
    """
    Build the client greeting.

    Raises:
        ValueError: If no methods or more than 255 are given.
    """
    if not 0 < len(methods) < 256:
        msg = "Between 1 and 255 auth methods required"
        raise ValueError(msg)
    return bytes([SOCKS_VERSION, len(methods), *methods])


def interpret_auth_response(buffer: bytes) -> AuthMethod:
    """
    Parse the server's method selection.

    Returns:
        The method the server selected.

    Raises:
        ProtocolError: If the response is malformed or no method was acceptable.
    """
    if len(buffer) != 2:
        msg = "Auth response must be 2 bytes"
        raise ProtocolError(msg, length=len(buffer))
    version, method = buffer
    if version != SOCKS_VERSION:
        msg = "Unsupported SOCKS version"
        raise ProtocolError(msg, version=version)
    try:
        selected = AuthMethod(method)
    except ValueError:
        msg = "Unknown auth method"
        raise ProtocolError(msg, method=method) from None
    if selected == AuthMethod.NONE_ACCEPTABLE:
        msg = "No acceptable auth method"
        raise ProtocolError(msg, method=method)
    return selected
