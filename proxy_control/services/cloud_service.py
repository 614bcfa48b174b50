"""
Cloud server provisioning service.

Creates, destroys and reboots the self-hosted cloud proxy server, and
registers a freshly installed server as a contact on the cloud-admin
network.
"""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog

from proxy_control.config import ProxyControlConfig
from proxy_control.core.events import InstallerEvent, InstallerEventKind
from proxy_control.exceptions import (
    ProviderError,
    ServerAlreadyExistsError,
    UnsupportedOperationError,
)
from proxy_control.interfaces.cloud import ModuleLoader
from proxy_control.interfaces.ui import UiNotifier
from proxy_control.models.cloud import (
    CloudOperation,
    CloudOperationArgs,
    CloudOperationResult,
    ProvisioningJob,
    ProvisioningStage,
    ServerInfo,
)
from proxy_control.models.session import NetworkSession, SocialNetworkInfo
from proxy_control.models.ui import Update
from proxy_control.services.session_service import SessionManager

logger = structlog.get_logger(__name__)

SERVER_ALREADY_EXISTS_CODE = "VM_AE"
INVITE_TOKEN_VERSION = 2


@asynccontextmanager
async def one_shot_module(loader: ModuleLoader, name: str) -> AsyncIterator[Any]:
    """
    Load a fresh instance of module ``name`` and release it on exit.

    The instance is released exactly once whether the body succeeds or
    raises. Release errors are logged, never raised.

    Raises:
        ProviderError: If the module cannot be created.
    """
    try:
        module = loader.create(name)
    except Exception as e:
        msg = f"error creating {name} module: {e}"
        raise ProviderError(msg, provider=name) from e
    logger.debug("Created module", module=name)

    try:
        yield module
    finally:
        try:
            loader.close(name, module)
            logger.debug("Destroyed module", module=name)
        except Exception as e:
            logger.debug("Error destroying module", module=name, error_type=type(e).__name__)


class CloudProvisioner:
    """
    Drives cloud server operations.

    Install runs through the stages CREATING_SERVER, INSTALLING and
    REGISTERING, pushing status and progress to the UI. Operations are not
    queued or locked against each other, and a failed install is not
    rolled back.
    """

    def __init__(
        self,
        loader: ModuleLoader,
        sessions: SessionManager,
        notifier: UiNotifier,
        config: ProxyControlConfig,
    ) -> None:
        """
        Args:
            loader: Loads cloud provider and installer modules.
            sessions: Provides the cloud-admin network session.
            notifier: Receives CLOUD_INSTALL_STATUS and CLOUD_INSTALL_PROGRESS.
            config: Provider, droplet and progress settings.
        """
        self._loader = loader
        self._sessions = sessions
        self._notifier = notifier
        self._config = config
        self._last_job: ProvisioningJob | None = None

    @property
    def last_job(self) -> ProvisioningJob | None:
        return self._last_job

    def cloud_provider_names(self) -> list[str]:
        prefix = self._config.cloud_provider_module_prefix
        names = self._loader.available()
        return [name.removeprefix(prefix) for name in names if name.startswith(prefix)]

    async def cloud_update(self, args: CloudOperationArgs) -> CloudOperationResult:
        """
        Run a cloud operation requested by the UI.

        Raises:
            UnsupportedOperationError: If the provider or operation is not
                supported, or INSTALL has no region.
        """
        if args.provider_name != self._config.cloud_provider_name:
            msg = "unsupported cloud provider"
            raise UnsupportedOperationError(msg, provider=args.provider_name)

        match args.operation:
            case CloudOperation.INSTALL:
                if not args.region:
                    msg = "no region specified for cloud provider"
                    raise UnsupportedOperationError(msg, provider=args.provider_name)
                await self.install(args.region)
                return CloudOperationResult()
            case CloudOperation.DESTROY:
                await self.destroy()
                return CloudOperationResult()
            case CloudOperation.REBOOT:
                await self.reboot()
                return CloudOperationResult()
            case CloudOperation.HAS_OAUTH:
                return CloudOperationResult(has_oauth=await self.has_oauth())
            case _:
                msg = "cloud operation not supported"
                raise UnsupportedOperationError(msg, operation=args.operation)

    async def install(self, region: str) -> ProvisioningJob:
        """
        Create a cloud server, install the proxy on it and register it.

        Returns:
            The completed job.

        Raises:
            ServerAlreadyExistsError: If the server already exists.
            Exception: Any other provider, installer or network failure.
        """
        job = ProvisioningJob(
            provider_name=self._config.cloud_provider_name, operation=CloudOperation.INSTALL
        )
        self._last_job = job
        logger.info("Creating cloud server", region=region)

        try:
            job.advance(ProvisioningStage.CREATING_SERVER)
            self._push_status("CLOUD_INSTALL_STATUS_CREATING_SERVER")
            # Start above zero so the progress bar is visibly moving.
            self._push_progress(job, self._config.cloud_deploy_progress / 2)

            cloud_network = self._sessions.cloud_admin_network()
            if cloud_network is None:
                msg = "No cloud network registered"
                raise UnsupportedOperationError(msg)
            session = await self._sessions.login_if_needed(cloud_network)

            server = await self._create_server(region)

            job.advance(ProvisioningStage.INSTALLING)
            self._push_progress(job, self._config.cloud_deploy_progress)
            self._push_status("CLOUD_INSTALL_STATUS_LOGGING_IN")
            logger.debug("Installing on new server", host=server.host, port=server.ssh_port)
            network_data = await self._run_installer(server, job)

            job.advance(ProvisioningStage.REGISTERING)
            await self._register_server(session, network_data)

            self._push_progress(job, 100)
            job.complete(network_data)
        except Exception as e:
            job.fail(e)
            logger.error("Cloud install failed", stage=job.stage, error_type=type(e).__name__)
            raise

        logger.info("Cloud server installed")
        return job

    async def _create_server(self, region: str) -> ServerInfo:
        async with one_shot_module(self._loader, self._config.cloud_provider_module) as provider:
            try:
                server = await provider.start(self._config.cloud_droplet_name, region)
            except Exception as e:
                if getattr(e, "errcode", None) == SERVER_ALREADY_EXISTS_CODE:
                    raise ServerAlreadyExistsError(provider=self._config.cloud_provider_name) from e
                raise
        return ServerInfo.from_provider(server)

    async def _run_installer(self, server: ServerInfo, job: ProvisioningJob) -> dict[str, Any]:
        deploy = self._config.cloud_deploy_progress

        def relay(event: InstallerEvent) -> None:
            if event.kind == InstallerEventKind.STATUS:
                self._push_status(event.value)
            elif event.kind == InstallerEventKind.PROGRESS:
                self._push_progress(job, deploy + float(event.value) * (100 - deploy) / 100)

        async with one_shot_module(self._loader, self._config.cloud_installer_module) as installer:
            with installer.subscribe(relay):
                return await installer.install(
                    server.host,
                    server.ssh_port,
                    self._config.cloud_install_user,
                    server.private_key,
                )

    async def _register_server(self, session: NetworkSession, network_data: dict[str, Any]) -> None:
        # Tells the cloud provider the invite is for the admin who created the server.
        network_data["isAdmin"] = True
        token = {
            "v": INVITE_TOKEN_VERSION,
            "networkName": session.name,
            "networkData": json.dumps(network_data),
        }
        await self._sessions.accept_invitation(
            SocialNetworkInfo(name=session.name, user_id=session.user_id), token
        )

    async def destroy(self) -> None:
        logger.debug("Destroying cloud server")
        async with one_shot_module(self._loader, self._config.cloud_provider_module) as provider:
            await provider.stop(self._config.cloud_droplet_name)

    async def reboot(self) -> None:
        logger.debug("Rebooting cloud server")
        async with one_shot_module(self._loader, self._config.cloud_provider_module) as provider:
            await provider.reboot(self._config.cloud_droplet_name)

    async def has_oauth(self) -> bool:
        async with one_shot_module(self._loader, self._config.cloud_provider_module) as provider:
            return await provider.has_oauth()

    def _push_status(self, status: Any) -> None:
        self._notifier.update(Update.CLOUD_INSTALL_STATUS, status)

    def _push_progress(self, job: ProvisioningJob, progress: float) -> None:
        self._notifier.update(Update.CLOUD_INSTALL_PROGRESS, job.report_progress(progress))
