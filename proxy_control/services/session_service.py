"""
Social network session service.

Logs into and out of social networks, remembers which networks were
connected so they can be restored on restart, and resolves contacts and
their instances for the rest of the core.
"""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from proxy_control.core.stored_value import StoredValue
from proxy_control.exceptions import (
    ProtectedNetworkError,
    ProviderError,
    UnknownNetworkError,
    UnknownSessionError,
)
from proxy_control.interfaces.social import RemoteInstance, RemoteUser
from proxy_control.interfaces.storage import Storage
from proxy_control.interfaces.ui import UiNotifier
from proxy_control.models.session import (
    ConsentAction,
    InstancePath,
    LoginResult,
    LoginType,
    NetworkRegistration,
    NetworkSession,
    SocialNetworkInfo,
    UserPath,
)
from proxy_control.models.ui import Update
from proxy_control.services.settings_service import SettingsStore

logger = structlog.get_logger(__name__)

CONNECTED_NETWORKS_KEY = "connectedNetworks"


class SessionManager:
    """
    Owns all social network sessions.

    State:
    - ``_sessions``: network name -> local user id -> session. An entry is
      added when a login succeeds and removed on logout.
    - ``_pending_logins``: network name -> in-flight login task. An entry is
      added when a login starts and removed when it resolves, fails or is
      cancelled by ``close()``, so there is at most one login per network
      at a time.
    - the persisted list of connected networks, which only ever contains
      networks whose login succeeded.
    """

    def __init__(
        self,
        registrations: Iterable[NetworkRegistration],
        storage: Storage,
        settings: SettingsStore,
        notifier: UiNotifier,
    ) -> None:
        """
        Args:
            registrations: Networks that can be logged into.
            storage: Persists the connected network list.
            settings: Settings store; startup reconnection waits for it to load.
            notifier: Receives REMOVE_FRIEND updates.
        """
        self._registrations = {r.name: r for r in registrations}
        self._settings = settings
        self._notifier = notifier

        self._sessions: dict[str, dict[str, NetworkSession]] = {}
        self._pending_logins: dict[str, asyncio.Task[LoginResult]] = {}
        self._connected_networks = StoredValue[list[str]](storage, CONNECTED_NETWORKS_KEY, [])

        self._background: set[asyncio.Task[None]] = set()
        self._description_subscription = settings.on_description_changed(
            self._on_description_changed
        )

    @property
    def connected_networks(self) -> StoredValue[list[str]]:
        return self._connected_networks

    def network_names(self) -> list[str]:
        """Registered network names, cloud-admin networks first."""
        names = list(self._registrations)
        return sorted(names, key=lambda n: not self._registrations[n].is_cloud_admin)

    def cloud_admin_network(self) -> str | None:
        """Name of the registered cloud-admin network, if any."""
        return next((r.name for r in self._registrations.values() if r.is_cloud_admin), None)

    def online_networks(self) -> list[dict[str, str]]:
        return [s.to_info() for sessions in self._sessions.values() for s in sessions.values()]

    def get_session(self, network: str, user_id: str | None = None) -> NetworkSession | None:
        """
        Find a logged-in session.

        Without ``user_id`` the first session of the network is returned;
        only one login per network is supported in practice.
        """
        sessions = self._sessions.get(network, {})
        if user_id is not None:
            return sessions.get(user_id)
        return next(iter(sessions.values()), None)

    async def login(
        self,
        network: str,
        login_type: LoginType = LoginType.INITIAL,
        user_name: str | None = None,
    ) -> LoginResult:
        """
        Log into a social network.

        Concurrent calls for the same network share one provider login and
        all observe its outcome.

        Raises:
            UnknownNetworkError: If the network is not registered.
            Exception: Whatever the provider login raised.
        """
        registration = self._registrations.get(network)
        if registration is None:
            logger.warning("Network does not exist", network=network)
            msg = f"Network does not exist ({network})"
            raise UnknownNetworkError(msg, network=network)

        pending = self._pending_logins.get(network)
        if pending is None:
            logger.debug("Starting login", network=network, login_type=login_type.name)
            pending = asyncio.create_task(self._login(registration, login_type, user_name))
            self._pending_logins[network] = pending
        else:
            logger.debug("Joining pending login", network=network)

        return await asyncio.shield(pending)

    async def _login(
        self,
        registration: NetworkRegistration,
        login_type: LoginType,
        user_name: str | None,
    ) -> LoginResult:
        name = registration.name
        try:
            network = registration.factory(name)
            await network.login(login_type, user_name)

            instance = network.my_instance
            if instance is None:
                msg = "Network did not report the local instance"
                raise ProviderError(msg, provider=name)

            session = NetworkSession(
                name=name,
                user_id=instance.user_id,
                instance_id=instance.instance_id,
                network=network,
                is_cloud_admin=registration.is_cloud_admin,
            )
            self._sessions.setdefault(name, {})[session.user_id] = session
            logger.info("Successfully logged in to network", network=name, userId=session.user_id)

            await self._remember_network(name)
            return LoginResult(user_id=session.user_id, instance_id=session.instance_id)
        except Exception as e:
            logger.warning("Login failed", network=name, error_type=type(e).__name__)
            raise
        finally:
            self._pending_logins.pop(name, None)

    async def _remember_network(self, name: str) -> None:
        try:
            await self._connected_networks.update(
                lambda names: names if name in names else [*names, name]
            )
        except Exception as e:
            logger.warning("Could not save connected networks", error_type=type(e).__name__)

    async def login_if_needed(self, network: str) -> NetworkSession:
        """Return the session for ``network``, logging in first if there is none."""
        session = self.get_session(network)
        if session is not None:
            return session

        await self.login(network, LoginType.INITIAL)
        session = self.get_session(network)
        if session is None:
            msg = "Login did not produce a session"
            raise UnknownSessionError(msg, network=network)
        return session

    async def reconnect(self) -> None:
        """
        Log back into the networks that were connected before the last shutdown.

        The persisted list is cleared before any login starts; each network
        that logs in successfully adds itself back. Failures are logged and
        never raised.
        """
        await self._settings.wait_loaded()
        try:
            networks = await self._connected_networks.get()
            await self._connected_networks.set([])
        except Exception as e:
            logger.error("Could not read connected networks", error_type=type(e).__name__)
            return

        logins = []
        for name in networks:
            if name not in self._registrations:
                # Renamed or retired networks are dropped.
                logger.debug("Skipping unknown network", network=name)
                continue
            logins.append(self._reconnect_network(name))

        await asyncio.gather(*logins)
        logger.info("Finished handling reconnections", count=len(logins))

    async def _reconnect_network(self, name: str) -> None:
        try:
            await self.login(name, LoginType.RECONNECT)
        except Exception as e:
            logger.warning("Reconnection failed", network=name, error_type=type(e).__name__)

    async def logout(self, network: str, user_id: str | None = None) -> None:
        """
        Log out of a network.

        Raises:
            UnknownSessionError: If no matching session is logged in.
            ProtectedNetworkError: If the session is the cloud-admin session.
        """
        session = self.get_session(network, user_id)
        if session is None:
            logger.warning("Could not logout of network", network=network)
            msg = "Not logged into network"
            raise UnknownSessionError(msg, network=network, user_id=user_id)
        if session.is_cloud_admin:
            logger.error("Cannot logout from protected network", network=network)
            msg = f"Cannot logout from {network}"
            raise ProtectedNetworkError(msg, network=network)

        await self._logout_session(session)

    async def _logout_session(self, session: NetworkSession) -> None:
        await session.network.logout()

        sessions = self._sessions.get(session.name, {})
        sessions.pop(session.user_id, None)
        if not sessions:
            self._sessions.pop(session.name, None)
        logger.info("Successfully logged out of network", network=session.name)

        try:
            await self._connected_networks.update(
                lambda names: [n for n in names if n != session.name]
            )
        except Exception as e:
            logger.warning(
                "Could not remove network from connected networks",
                network=session.name,
                error_type=type(e).__name__,
            )

    def get_user(self, path: UserPath) -> RemoteUser | None:
        """Resolve a contact. Returns None (and logs) when anything is missing."""
        session = self.get_session(path.network.name, path.network.user_id)
        if session is None:
            logger.error("No network", network=path.network.name)
            return None
        user = session.network.get_user(path.user_id)
        if user is None:
            logger.error("No user", network=path.network.name)
        return user

    def get_instance(self, path: InstancePath) -> RemoteInstance | None:
        """Resolve a contact's instance. Returns None (and logs) when anything is missing."""
        user = self.get_user(path)
        if user is None:
            return None
        instance = user.get_instance(path.instance_id)
        if instance is None:
            logger.error("No instance", instance_id=path.instance_id)
        return instance

    def modify_consent(self, path: UserPath, action: ConsentAction) -> None:
        """Apply a local consent change; unresolved users are logged and ignored."""
        user = self.get_user(path)
        if user is None:
            logger.error("Cannot modify consent for non-existing user", network=path.network.name)
            return
        user.modify_consent(action)

    async def remove_contact(self, network: str, user_id: str) -> None:
        """
        Remove a contact from the roster and the UI.

        Removing the last contact of the cloud-admin network logs out of it.

        Raises:
            UnknownSessionError: If the network is not logged in.
        """
        session = self.get_session(network)
        if session is None:
            msg = "Not logged into network"
            raise UnknownSessionError(msg, network=network)

        logger.info("Removing contact", network=network)
        try:
            await session.network.remove_user_from_storage(user_id)
        except Exception as e:
            logger.warning("Could not remove contact from storage", error_type=type(e).__name__)

        self._notifier.update(Update.REMOVE_FRIEND, {"networkName": network, "userId": user_id})

        if session.is_cloud_admin and len(session.roster) == 0:
            await self._logout_session(session)
            logger.info("Logged out of network because roster is empty", network=network)

    async def start_proxying(self, path: InstancePath) -> tuple[str, int]:
        """
        Start using a contact's instance as a proxy.

        Raises:
            UnknownSessionError: If the instance cannot be resolved.
        """
        return await self._require_instance(path).start()

    def stop_proxying(self, path: InstancePath) -> None:
        self._require_instance(path).stop()

    def verify_user(self, path: InstancePath) -> None:
        logger.info("Starting user verification", network=path.network.name)
        self._require_instance(path).verify_user()

    def finish_verify_user(self, path: InstancePath, same_sas: bool) -> None:
        logger.info("Finishing user verification", network=path.network.name, same_sas=same_sas)
        self._require_instance(path).finish_verify_user(same_sas)

    def _require_instance(self, path: InstancePath) -> RemoteInstance:
        instance = self.get_instance(path)
        if instance is None:
            msg = "Instance does not exist"
            raise UnknownSessionError(msg, network=path.network.name, user_id=path.user_id)
        return instance

    def _require_session(self, info: SocialNetworkInfo) -> NetworkSession:
        session = self.get_session(info.name, info.user_id)
        if session is None:
            msg = "Not logged into network"
            raise UnknownSessionError(msg, network=info.name, user_id=info.user_id)
        return session

    async def accept_invitation(
        self,
        info: SocialNetworkInfo,
        token: Mapping[str, Any],
        user_id: str | None = None,
    ) -> None:
        await self._require_session(info).network.accept_invitation(token, user_id)

    async def invite_user(self, info: SocialNetworkInfo, args: Mapping[str, Any]) -> None:
        await self._require_session(info).network.invite_user(args)

    async def get_invite_url(self, info: SocialNetworkInfo, args: Mapping[str, Any]) -> str:
        return await self._require_session(info).network.get_invite_url(args)

    def send_email(self, info: SocialNetworkInfo, to: str, subject: str, body: str) -> None:
        self._require_session(info).network.send_email(to, subject, body)

    async def resend_instance_handshakes(self) -> None:
        """Ask every session to re-announce the local instance to its peers."""
        sessions = [s for by_user in self._sessions.values() for s in by_user.values()]
        results = await asyncio.gather(
            *(s.network.resend_instance_handshakes() for s in sessions),
            return_exceptions=True,
        )
        for session, result in zip(sessions, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "Could not resend instance handshakes",
                    network=session.name,
                    error_type=type(result).__name__,
                )

    def _on_description_changed(self, description: str) -> None:
        task = asyncio.create_task(self.resend_instance_handshakes())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def close(self) -> None:
        """Cancel in-flight logins and background work."""
        self._description_subscription.unsubscribe()
        for task in [*self._pending_logins.values(), *self._background]:
            task.cancel()
        self._pending_logins.clear()
        self._background.clear()
