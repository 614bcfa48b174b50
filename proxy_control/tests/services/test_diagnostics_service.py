from unittest.mock import AsyncMock, Mock

import pytest

from proxy_control.services.diagnostics_service import (
    DiagnosticsExporter,
    RedactionState,
    collect_field_values,
    redact,
)


def test_redact_replaces_every_occurrence_of_a_field_value() -> None:
    """Test that a redacted value is replaced everywhere in the text."""
    text = 'Logged in {"userId":"12345"}\nresending handshake to 12345'

    assert redact(text) == 'Logged in {"userId":"USER_ID_1"}\nresending handshake to USER_ID_1'


def test_redact_numbers_distinct_values_in_first_seen_order() -> None:
    """Test placeholder numbering."""
    text = '{"name":"Alice"} {"name":"Bob"} {"name":"Alice"}'

    assert redact(text) == '{"name":"NAME_1"} {"name":"NAME_2"} {"name":"NAME_1"}'


def test_redact_handles_escaped_json() -> None:
    """Test redacting fields inside escaped JSON strings."""
    text = r'{"event":"roster","data":"{\"name\":\"Bob\",\"url\":\"https://pic.example/b\"}"}'

    redacted = redact(text)

    assert "Bob" not in redacted
    assert "pic.example" not in redacted
    assert r"\"name\":\"NAME_1\"" in redacted
    assert r"\"url\":\"URL_1\"" in redacted


def test_redact_replaces_email_addresses() -> None:
    """Test email address redaction."""
    assert redact("invite sent to Bob.Smith@Example.org") == "invite sent to EMAIL_ADDRESS"


def test_redact_is_deterministic() -> None:
    """Test that the same input always redacts the same way."""
    text = '{"userId":"u-1","imageData":"data:abc"} u-1 {"userId":"u-2"}'

    assert redact(text) == redact(text)
    assert redact(text) == (
        '{"userId":"USER_ID_1","imageData":"IMAGE_DATA_1"} USER_ID_1 {"userId":"USER_ID_2"}'
    )


def test_redaction_state_is_shared_across_calls() -> None:
    """Test that one state keeps numbering across calls."""
    state = RedactionState()

    first = redact('{"name":"Alice"}', state)
    second = redact('{"name":"Bob"} {"name":"Alice"}', state)

    assert first == '{"name":"NAME_1"}'
    assert second == '{"name":"NAME_2"} {"name":"NAME_1"}'


def test_collect_field_values_skips_other_fields() -> None:
    text = '{"networkName":"Cloud","name":"Alice","userName":"alice"}'

    assert collect_field_values(text, "name") == ["Alice"]


@pytest.fixture
def log_source() -> Mock:
    source = Mock()
    source.get_logs = AsyncMock(
        return_value=[
            '{"event":"Successfully logged in to network","userId":"12345"}',
            '{"event":"Invite sent","to":"bob@example.com"}',
        ]
    )
    return source


@pytest.fixture
def prober() -> Mock:
    prober = Mock()
    prober.get_network_info = AsyncMock(
        return_value=(
            "NAT Type: Full-cone NAT\nNAT-PMP: Supported\nPCP: Not supported\nUPnP IGD: Supported\n"
        )
    )
    return prober


@pytest.mark.asyncio
async def test_get_logs_prefixes_version_and_redacts(log_source, prober) -> None:
    """Test the exported log header and redaction."""
    exporter = DiagnosticsExporter(log_source, prober, "0.1.0")

    logs = await exporter.get_logs()

    assert logs == (
        'Version: "0.1.0"\n\n'
        '{"event":"Successfully logged in to network","userId":"USER_ID_1"}\n'
        '{"event":"Invite sent","to":"EMAIL_ADDRESS"}'
    )


@pytest.mark.asyncio
async def test_get_logs_and_network_info(log_source, prober) -> None:
    """Test that the network report comes before the logs."""
    exporter = DiagnosticsExporter(log_source, prober, {"core": "0.1.0"})

    report = await exporter.get_logs_and_network_info()

    assert report.startswith("NAT Type: Full-cone NAT\n")
    assert "UPnP IGD: Supported\n\nVersion: {\"core\": \"0.1.0\"}\n\n" in report
    assert "12345" not in report
