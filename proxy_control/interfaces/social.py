"""
Social network provider protocol definitions.

A provider implements the signaling protocol of one social network. The
core only orchestrates providers: it never talks to a network directly.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from proxy_control.models.session import ConsentAction, LoginType


@runtime_checkable
class LocalInstance(Protocol):
    """The local user's identity on a network."""

    @property
    def user_id(self) -> str: ...

    @property
    def instance_id(self) -> str: ...


@runtime_checkable
class RemoteInstance(Protocol):
    """One device of a contact."""

    async def start(self) -> tuple[str, int]:
        """
        Begin proxying through this instance.

        Returns:
            The (address, port) of the local proxy endpoint.
        """
        ...

    def stop(self) -> None: ...

    def verify_user(self) -> None: ...

    def finish_verify_user(self, same_sas: bool) -> None: ...


@runtime_checkable
class RemoteUser(Protocol):
    """A contact on a network."""

    def get_instance(self, instance_id: str) -> RemoteInstance | None: ...

    def modify_consent(self, action: ConsentAction) -> None: ...


@runtime_checkable
class SocialNetwork(Protocol):
    """
    Abstract interface for a social network provider.

    ``my_instance`` is only guaranteed to be set after ``login`` succeeds.
    """

    @property
    def my_instance(self) -> LocalInstance | None: ...

    @property
    def roster(self) -> Mapping[str, RemoteUser]: ...

    async def login(self, login_type: LoginType, user_name: str | None = None) -> None:
        """
        Log into the network.

        Raises:
            Exception: Any provider-specific failure.
        """
        ...

    async def logout(self) -> None: ...

    def get_user(self, user_id: str) -> RemoteUser | None: ...

    async def resend_instance_handshakes(self) -> None: ...

    async def remove_user_from_storage(self, user_id: str) -> None: ...

    async def accept_invitation(
        self, token: Mapping[str, Any], user_id: str | None = None
    ) -> None: ...

    async def invite_user(self, args: Mapping[str, Any]) -> None: ...

    async def get_invite_url(self, args: Mapping[str, Any]) -> str: ...

    def send_email(self, to: str, subject: str, body: str) -> None: ...
