"""
Network capability models.
"""

from dataclasses import dataclass
from enum import StrEnum


class PortControlSupport(StrEnum):
    """Whether the local router supports any port-mapping protocol."""

    PENDING = "pending"
    TRUE = "true"
    FALSE = "false"


@dataclass(frozen=True, kw_only=True)
class ProtocolSupport:
    """Result of probing the router for port-mapping protocols."""

    nat_pmp: bool = False
    pcp: bool = False
    upnp: bool = False

    @property
    def any(self) -> bool:
        return self.nat_pmp or self.pcp or self.upnp


@dataclass(frozen=True, kw_only=True)
class NetworkInfo:
    """
    NAT classification and port-control support of the local network.

    The support flags are None when the port-control probe failed, in
    which case ``error_msg`` explains why.
    """

    nat_type: str
    pmp_support: bool | None = None
    pcp_support: bool | None = None
    upnp_support: bool | None = None
    error_msg: str | None = None

    def format(self) -> str:
        """Render the report as bug-report text."""
        lines = [f"NAT Type: {self.nat_type}"]
        if self.error_msg:
            lines.append(self.error_msg)
        else:
            lines.append(f"NAT-PMP: {_supported(self.pmp_support)}")
            lines.append(f"PCP: {_supported(self.pcp_support)}")
            lines.append(f"UPnP IGD: {_supported(self.upnp_support)}")
        return "\n".join(lines) + "\n"


def _supported(flag: bool | None) -> str:
    return "Supported" if flag else "Not supported"
