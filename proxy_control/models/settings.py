"""
Global settings model and merge rules.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from typing import Any

STORAGE_VERSION = 1

DEFAULT_STUN_SERVERS = (
    "stun:stun.l.google.com:19302",
    "stun:stun1.l.google.com:19302",
    "stun:stun.services.mozilla.com",
    "stun:stun.stunprotocol.org",
)


@dataclass(kw_only=True)
class GlobalSettings:
    """
    Live, mutable settings record.

    The instance is shared; list fields are updated in place so that any
    component holding a reference to them observes changes.

    Attributes:
        version: Storage schema version.
        description: Description of this device, sent to peers.
        stun_servers: STUN servers used for NAT traversal and probing.
        console_filter: Minimum level logged to the console.
        language: UI language code.
        stats_reporting_enabled: Whether anonymous metrics may be sent.
        enforce_proxy_server_validity: Organizational policy flag.
        valid_proxy_servers: Organizational allow-list of proxy servers.
    """

    version: int = STORAGE_VERSION
    description: str = ""
    stun_servers: list[str] = field(default_factory=lambda: list(DEFAULT_STUN_SERVERS))
    console_filter: str = "warning"
    language: str = "en"
    stats_reporting_enabled: bool = False
    enforce_proxy_server_validity: bool = False
    valid_proxy_servers: list[str] = field(default_factory=list)

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def merge_value(target: Any, source: Any) -> Any:
    """
    Merge ``source`` onto ``target`` and return the merged value.

    Lists are truncated and refilled in place, dicts are merged
    recursively, and anything else is replaced by ``source``.
    """
    if isinstance(target, list) and isinstance(source, list | tuple):
        target[:] = list(source)
        return target
    if isinstance(target, dict) and isinstance(source, Mapping):
        for key, value in source.items():
            if value is None:
                continue
            target[key] = merge_value(target[key], value) if key in target else value
        return target
    return source


def merge_settings(settings: GlobalSettings, changes: Mapping[str, Any]) -> GlobalSettings:
    """
    Merge a (possibly partial) mapping of field values into ``settings``.

    ``None`` values are skipped. Unknown keys raise KeyError.
    """
    known = GlobalSettings.field_names()
    for name, value in changes.items():
        if name not in known:
            raise KeyError(name)
        if value is None:
            continue
        setattr(settings, name, merge_value(getattr(settings, name), value))
    return settings


@dataclass(frozen=True, kw_only=True)
class OrgPolicy:
    """Settings an organization may enforce through managed policy."""

    enforce_proxy_server_validity: bool
    valid_proxy_servers: list[str] = field(default_factory=list)
