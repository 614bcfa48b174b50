"""
Network primitives: SOCKS handshake codec, TCP transport and STUN probing.
"""

from proxy_control.net.socks import AuthMethod, compose_auth_handshake, interpret_auth_response
from proxy_control.net.transport import Connection, TcpConnection

__all__ = [
    "AuthMethod",
    "Connection",
    "TcpConnection",
    "compose_auth_handshake",
    "interpret_auth_response",
]
