"""
Proxy control core facade.

This is the entry point the UI talks to. It wires the services together
and exposes one method per UI command.
"""

import asyncio
from collections.abc import Callable, Coroutine, Iterable, Mapping
from typing import Any, Self

import httpx
import structlog

from proxy_control.api.http_client import AsyncHttpClient
from proxy_control.config import ProxyControlConfig
from proxy_control.interfaces.cloud import ModuleLoader
from proxy_control.interfaces.probes import NatProbe, PortControlProbe
from proxy_control.interfaces.storage import Storage
from proxy_control.interfaces.ui import LogSource, UiNotifier
from proxy_control.logs import LogBuffer, configure_logging
from proxy_control.models.capability import NetworkInfo, PortControlSupport
from proxy_control.models.cloud import CloudOperationArgs, CloudOperationResult
from proxy_control.models.session import (
    ConsentAction,
    InstancePath,
    LoginResult,
    LoginType,
    NetworkRegistration,
    SocialNetworkInfo,
    UserPath,
)
from proxy_control.models.settings import GlobalSettings, OrgPolicy
from proxy_control.models.ui import InitialState, Update
from proxy_control.net.nat import StunNatProbe
from proxy_control.net.transport import Connection, TcpConnection
from proxy_control.services.capability_service import CapabilityProber
from proxy_control.services.cloud_service import CloudProvisioner
from proxy_control.services.diagnostics_service import DiagnosticsExporter
from proxy_control.services.reproxy_service import ReproxyValidator
from proxy_control.services.session_service import SessionManager
from proxy_control.services.settings_service import SettingsStore
from proxy_control.version import __version__

logger = structlog.get_logger(__name__)


class ProxyCore:
    """
    Control-plane core of the peer-to-peer proxy.

    Example:
        ```python
        async with ProxyCore(
            storage=storage,
            notifier=ui,
            networks=[NetworkRegistration(name="Cloud", factory=CloudNetwork, is_cloud_admin=True)],
            module_loader=loader,
            port_control=port_control,
        ) as core:
            await core.login("Cloud")
            print(await core.get_logs_and_network_info())
        ```

    Args:
        storage: Persistent key/value store.
        notifier: Receives UI update events.
        networks: Social networks that can be logged into.
        module_loader: Loads cloud provider and installer modules.
        port_control: NAT-PMP/PCP/UPnP probe.
        nat_probe: NAT classification probe; defaults to STUN using the
            configured STUN servers.
        log_source: Buffered logs for diagnostics; defaults to an internal
            LogBuffer.
        config: Core configuration. Uses defaults if not provided.
        connection_factory: Creates TCP connections for the reproxy check.
        transport: Optional httpx transport for testing.
        configure_logs: Install the structlog processor chain on start(),
            routing events into the internal LogBuffer. This replaces the
            process-wide structlog configuration, so it is off by default;
            it has no effect when ``log_source`` is given.
    """

    def __init__(
        self,
        *,
        storage: Storage,
        notifier: UiNotifier,
        networks: Iterable[NetworkRegistration],
        module_loader: ModuleLoader,
        port_control: PortControlProbe,
        nat_probe: NatProbe | None = None,
        log_source: LogSource | None = None,
        config: ProxyControlConfig | None = None,
        connection_factory: Callable[[str, int], Connection] = TcpConnection,
        transport: httpx.AsyncBaseTransport | None = None,
        configure_logs: bool = False,
    ) -> None:
        self._config = config or ProxyControlConfig()
        self._notifier = notifier

        self._log_buffer: LogBuffer | None = None
        if log_source is None:
            self._log_buffer = LogBuffer(self._config.log_buffer_size)
            log_source = self._log_buffer
        self._configure_logs = configure_logs

        self._settings = SettingsStore(storage, notifier)
        self._sessions = SessionManager(networks, storage, self._settings, notifier)
        self._prober = CapabilityProber(
            nat_probe or StunNatProbe(self._settings.settings.stun_servers),
            port_control,
            notifier,
            self._config,
        )
        self._reproxy = ReproxyValidator(self._config, connection_factory)
        self._cloud = CloudProvisioner(module_loader, self._sessions, notifier, self._config)
        self._diagnostics = DiagnosticsExporter(log_source, self._prober, __version__)
        self._http = AsyncHttpClient(self._config, transport=transport)

        self._available_version: str | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._started = False
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        await self.close()

    @property
    def settings(self) -> GlobalSettings:
        return self._settings.settings

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    @property
    def prober(self) -> CapabilityProber:
        return self._prober

    @property
    def cloud(self) -> CloudProvisioner:
        return self._cloud

    async def start(self) -> None:
        """
        Load settings and start background work.

        Port-control probing and reconnection to previously connected
        networks run in the background; start() does not wait for them.
        """
        async with self._start_lock:
            if self._started:
                return
            if self._configure_logs and self._log_buffer is not None:
                configure_logging(self._log_buffer)
            logger.debug("Preparing core", version=__version__)
            await self._http.__aenter__()
            await self._settings.load()
            self._spawn(self._prober.refresh_port_control_support())
            self._spawn(self._sessions.reconnect())
            self._started = True

    async def close(self) -> None:
        """Stop background work and release resources."""
        async with self._start_lock:
            for task in self._background:
                task.cancel()
            await asyncio.gather(*self._background, return_exceptions=True)
            self._background.clear()

            self._sessions.close()
            self._prober.close()
            await self._http.close()
            self._started = False
            logger.debug("Core closed")

    async def wait_background(self) -> None:
        """Wait for startup background work to finish."""
        await asyncio.gather(*self._background, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # Sessions

    async def login(
        self,
        network: str,
        login_type: LoginType = LoginType.INITIAL,
        user_name: str | None = None,
    ) -> LoginResult:
        return await self._sessions.login(network, login_type, user_name)

    async def logout(self, network: str, user_id: str | None = None) -> None:
        await self._sessions.logout(network, user_id)

    def modify_consent(self, path: UserPath, action: ConsentAction) -> None:
        self._sessions.modify_consent(path, action)

    async def remove_contact(self, network: str, user_id: str) -> None:
        await self._sessions.remove_contact(network, user_id)

    async def accept_invitation(
        self, info: SocialNetworkInfo, token: Mapping[str, Any], user_id: str | None = None
    ) -> None:
        if info.user_id is None:
            session = self._sessions.get_session(info.name)
            if session is not None:
                info = SocialNetworkInfo(name=info.name, user_id=session.user_id)
        await self._sessions.accept_invitation(info, token, user_id)

    async def invite_user(self, info: SocialNetworkInfo, args: Mapping[str, Any]) -> None:
        await self._sessions.invite_user(info, args)

    async def get_invite_url(self, info: SocialNetworkInfo, args: Mapping[str, Any]) -> str:
        return await self._sessions.get_invite_url(info, args)

    def send_email(self, info: SocialNetworkInfo, to: str, subject: str, body: str) -> None:
        self._sessions.send_email(info, to, subject, body)

    async def start_proxying(self, path: InstancePath) -> tuple[str, int]:
        return await self._sessions.start_proxying(path)

    def stop_proxying(self, path: InstancePath) -> None:
        self._sessions.stop_proxying(path)

    def verify_user(self, path: InstancePath) -> None:
        self._sessions.verify_user(path)

    def finish_verify_user(self, path: InstancePath, same_sas: bool) -> None:
        self._sessions.finish_verify_user(path, same_sas)

    # Settings

    async def update_global_settings(
        self, new_settings: GlobalSettings | Mapping[str, Any]
    ) -> GlobalSettings:
        return await self._settings.update_global_settings(new_settings)

    async def update_global_setting(self, name: str, value: Any) -> GlobalSettings:
        return await self._settings.update_global_setting(name, value)

    async def update_org_policy(self, policy: OrgPolicy) -> GlobalSettings:
        return await self._settings.update_org_policy(policy)

    async def get_full_state(self) -> InitialState:
        settings = await self._settings.wait_loaded()
        return InitialState(
            network_names=self._sessions.network_names(),
            cloud_provider_names=self._cloud.cloud_provider_names(),
            global_settings=settings,
            online_networks=self._sessions.online_networks(),
            available_version=self._available_version,
            port_control_support=self._prober.port_control_support,
        )

    # Capabilities

    async def get_nat_type(self) -> str:
        return await self._prober.get_nat_type()

    async def get_port_control_support(self) -> PortControlSupport:
        return await self._prober.get_port_control_support()

    async def refresh_port_control_support(self) -> PortControlSupport:
        return await self._prober.refresh_port_control_support()

    async def get_network_info_obj(self) -> NetworkInfo:
        return await self._prober.get_network_info_obj()

    async def get_network_info(self) -> str:
        return await self._prober.get_network_info()

    async def check_reproxy(self, port: int) -> bool:
        return await self._reproxy.check_reproxy(port)

    # Cloud

    async def cloud_update(self, args: CloudOperationArgs) -> CloudOperationResult:
        return await self._cloud.cloud_update(args)

    # Diagnostics

    async def get_logs(self) -> str:
        return await self._diagnostics.get_logs()

    async def get_logs_and_network_info(self) -> str:
        return await self._diagnostics.get_logs_and_network_info()

    async def post_report(self, path: str, payload: Any) -> None:
        await self._http.post_report(path, payload)

    async def ping_until_online(self, url: str, *, timeout: float | None = None) -> None:
        await self._http.ping_until_online(url, timeout=timeout)

    # Versions

    def get_version(self) -> str:
        return __version__

    def handle_update(self, version: str) -> None:
        """Record that a newer core version is available and tell the UI."""
        self._available_version = version
        self._notifier.update(Update.CORE_UPDATE_AVAILABLE, {"version": version})
