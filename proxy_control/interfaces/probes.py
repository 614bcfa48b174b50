"""Network capability probe protocols."""

from typing import Protocol, runtime_checkable

from proxy_control.models.capability import ProtocolSupport


@runtime_checkable
class NatProbe(Protocol):
    """Classifies the NAT this host is behind."""

    async def probe(self) -> str:
        """
        Returns:
            Human-readable NAT type.
        """
        ...


@runtime_checkable
class PortControlProbe(Protocol):
    """Probes the router for port-mapping protocols."""

    async def probe_protocol_support(self) -> ProtocolSupport: ...
