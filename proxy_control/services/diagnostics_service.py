"""
Diagnostics export service.

Builds bug-report text from buffered logs and the network capability
report, with personal data replaced by stable pseudonyms.
"""

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any

import structlog

from proxy_control.interfaces.ui import LogSource
from proxy_control.services.capability_service import CapabilityProber

logger = structlog.get_logger(__name__)

# Processed in this order; tokens are numbered per field in first-seen order.
REDACTED_FIELDS = (
    ("name", "NAME_"),
    ("userId", "USER_ID_"),
    ("imageData", "IMAGE_DATA_"),
    ("url", "URL_"),
)

EMAIL_PATTERN = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,4}\b", re.IGNORECASE)
EMAIL_PLACEHOLDER = "EMAIL_ADDRESS"


def _field_pattern(name: str) -> re.Pattern[str]:
    # Also matches escaped JSON nested in a JSON string, e.g. {\"name\":\"Bob\"}.
    return re.compile(r'\\*"' + re.escape(name) + r'\\*":\\*"([^"]+)"')


_FIELD_PATTERNS = {name: _field_pattern(name) for name, _ in REDACTED_FIELDS}


@dataclass
class RedactionState:
    """Distinct values seen per field during one export, in first-seen order."""

    values: dict[str, list[str]] = field(default_factory=dict)

    def token(self, name: str, prefix: str, value: str) -> str:
        seen = self.values.setdefault(name, [])
        if value not in seen:
            seen.append(value)
        return f"{prefix}{seen.index(value) + 1}"


def collect_field_values(text: str, name: str) -> list[str]:
    """Distinct values of JSON field ``name`` in ``text``, in first-seen order."""
    values: dict[str, None] = {}
    for match in _FIELD_PATTERNS[name].finditer(text):
        value = match.group(1).rstrip("\\")
        if value:
            values[value] = None
    return list(values)


def redact(text: str, state: RedactionState | None = None) -> str:
    """
    Replace personal data in log text.

    Every literal occurrence of a sensitive field's value is replaced, not
    only the one inside the JSON field, so the same value gets the same
    token wherever it appears. Remaining email addresses become
    EMAIL_PLACEHOLDER.
    """
    state = state if state is not None else RedactionState()
    for name, prefix in REDACTED_FIELDS:
        for value in collect_field_values(text, name):
            text = text.replace(value, state.token(name, prefix, value))
    return EMAIL_PATTERN.sub(EMAIL_PLACEHOLDER, text)


class DiagnosticsExporter:
    """Produces redacted logs and network reports for bug reports."""

    def __init__(self, log_source: LogSource, prober: CapabilityProber, version: Any) -> None:
        """
        Args:
            log_source: Buffered log lines.
            prober: Network capability prober.
            version: Version information for the report banner.
        """
        self._log_source = log_source
        self._prober = prober
        self._version = version

    def format_logs(self, lines: list[str]) -> str:
        return redact("\n".join(lines))

    async def get_logs(self) -> str:
        lines = await self._log_source.get_logs()
        logger.debug("Exporting logs", lines=len(lines))
        return f"Version: {json.dumps(self._version)}\n\n" + self.format_logs(lines)

    async def get_logs_and_network_info(self) -> str:
        network_info, logs = await asyncio.gather(self._prober.get_network_info(), self.get_logs())
        return f"{network_info}\n{logs}"
