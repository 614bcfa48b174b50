"""
Network capability probing service.

Classifies the local NAT and checks router support for port-mapping
protocols, caching the NAT type and pushing port-control status to the UI.
"""

import asyncio

import structlog

from proxy_control.config import ProxyControlConfig
from proxy_control.core.cache import NatTypeCache
from proxy_control.interfaces.probes import NatProbe, PortControlProbe
from proxy_control.interfaces.ui import UiNotifier
from proxy_control.models.capability import NetworkInfo, PortControlSupport
from proxy_control.models.ui import Update

logger = structlog.get_logger(__name__)

NAT_TIMEOUT_MESSAGE = "NAT classification timed out."


class CapabilityProber:
    """
    Probes NAT type and port-control support.

    NAT classification is slow, so results are cached for
    ``config.nat_cache_ttl`` seconds and callers arriving while a probe is
    running share it. A probe that outlives ``config.nat_probe_timeout``
    keeps running in the background and still fills the cache.
    """

    def __init__(
        self,
        nat_probe: NatProbe,
        port_control: PortControlProbe,
        notifier: UiNotifier,
        config: ProxyControlConfig,
    ) -> None:
        """
        Args:
            nat_probe: NAT classification probe.
            port_control: NAT-PMP/PCP/UPnP probe.
            notifier: Receives PORT_CONTROL_STATUS updates.
            config: Timeouts and cache lifetime.
        """
        self._nat_probe = nat_probe
        self._port_control = port_control
        self._notifier = notifier
        self._config = config

        self._nat_cache = NatTypeCache(config.nat_cache_ttl)
        self._pending_probe: asyncio.Task[str] | None = None
        self._port_control_support = PortControlSupport.PENDING

    @property
    def nat_cache(self) -> NatTypeCache:
        return self._nat_cache

    @property
    def port_control_support(self) -> PortControlSupport:
        return self._port_control_support

    async def get_nat_type(self) -> str:
        """
        Classify the NAT this host is behind.

        Returns:
            The cached or newly probed NAT type, or NAT_TIMEOUT_MESSAGE if
            the probe did not finish in time.

        Raises:
            Exception: Whatever the probe raised, if it failed before the timeout.
        """
        if self._nat_cache:
            return self._nat_cache.value

        if self._pending_probe is None:
            self._pending_probe = asyncio.create_task(self._probe_nat_type())
            self._pending_probe.add_done_callback(self._on_probe_done)

        try:
            return await asyncio.wait_for(
                asyncio.shield(self._pending_probe), self._config.nat_probe_timeout
            )
        except TimeoutError:
            logger.warning("NAT classification timed out", timeout=self._config.nat_probe_timeout)
            return NAT_TIMEOUT_MESSAGE

    async def _probe_nat_type(self) -> str:
        nat_type = await self._nat_probe.probe()
        self._nat_cache.set(nat_type)
        logger.info("NAT type classified", nat_type=nat_type)
        return nat_type

    def _on_probe_done(self, task: asyncio.Task[str]) -> None:
        self._pending_probe = None
        if task.cancelled():
            return
        if (error := task.exception()) is not None:
            logger.warning("NAT classification failed", error_type=type(error).__name__)

    async def get_port_control_support(self) -> PortControlSupport:
        """Return TRUE if the router supports NAT-PMP, PCP or UPnP."""
        support = await self._port_control.probe_protocol_support()
        return PortControlSupport.TRUE if support.any else PortControlSupport.FALSE

    async def refresh_port_control_support(self) -> PortControlSupport:
        """
        Re-probe port-control support, pushing PENDING and then the result.

        A failed probe is reported as FALSE.
        """
        self._set_port_control_support(PortControlSupport.PENDING)
        try:
            support = await self.get_port_control_support()
        except Exception as e:
            logger.warning("Port control probe failed", error_type=type(e).__name__, exc_info=e)
            support = PortControlSupport.FALSE
        self._set_port_control_support(support)
        return support

    def _set_port_control_support(self, support: PortControlSupport) -> None:
        self._port_control_support = support
        self._notifier.update(Update.PORT_CONTROL_STATUS, support)

    async def get_network_info_obj(self) -> NetworkInfo:
        """
        Probe NAT type and per-protocol port-control support.

        Never raises: probe failures are reported inside the result.
        """
        try:
            nat_type = await self.get_nat_type()
        except Exception as e:
            nat_type = f"Could not classify NAT: {e}"

        try:
            support = await self._port_control.probe_protocol_support()
        except Exception as e:
            return NetworkInfo(
                nat_type=nat_type,
                error_msg=f"Could not probe for port control protocols: {e}",
            )

        return NetworkInfo(
            nat_type=nat_type,
            pmp_support=support.nat_pmp,
            pcp_support=support.pcp,
            upnp_support=support.upnp,
        )

    async def get_network_info(self) -> str:
        """Network capability report as text."""
        return (await self.get_network_info_obj()).format()

    def close(self) -> None:
        """Cancel any running probe and the cache invalidation timer."""
        if self._pending_probe is not None:
            self._pending_probe.cancel()
            self._pending_probe = None
        self._nat_cache.clear()
