import pytest

from proxy_control.exceptions import ProtocolError
from proxy_control.net.socks import AuthMethod, compose_auth_handshake, interpret_auth_response


def test_compose_noauth_handshake() -> None:
    """Test the minimal SOCKS5 greeting."""
    assert compose_auth_handshake([AuthMethod.NOAUTH]) == b"\x05\x01\x00"


def test_compose_handshake_with_several_methods() -> None:
    """Test a greeting offering several methods."""
    handshake = compose_auth_handshake([AuthMethod.NOAUTH, AuthMethod.USERPASS])

    assert handshake == b"\x05\x02\x00\x02"


@pytest.mark.parametrize("count", [0, 256])
def test_compose_handshake_rejects_bad_method_count(count: int) -> None:
    """Test method count bounds."""
    with pytest.raises(ValueError):
        compose_auth_handshake([AuthMethod.NOAUTH] * count)


def test_interpret_noauth_response() -> None:
    assert interpret_auth_response(b"\x05\x00") == AuthMethod.NOAUTH


@pytest.mark.parametrize(
    "response",
    [
        b"\x05",
        b"\x05\x00\x00",
        b"\x04\x00",
        b"\x05\x7f",
        b"\x05\xff",
        b"HTTP/1.1 400 Bad Request",
    ],
)
def test_interpret_rejects_invalid_responses(response: bytes) -> None:
    """Test rejecting malformed method selection replies."""
    with pytest.raises(ProtocolError):
        interpret_auth_response(response)
