"""
Cloud provisioning models.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Self

from proxy_control.exceptions import ProvisioningError


class CloudOperation(StrEnum):
    """Operations the UI can request against a cloud provider."""

    INSTALL = "install"
    DESTROY = "destroy"
    REBOOT = "reboot"
    HAS_OAUTH = "has_oauth"


class ProvisioningStage(StrEnum):
    """Stage of a provisioning job."""

    NOT_STARTED = "not_started"
    CREATING_SERVER = "creating_server"
    INSTALLING = "installing"
    REGISTERING = "registering"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProvisioningStage.DONE, ProvisioningStage.FAILED)


_NEXT_STAGE = {
    ProvisioningStage.NOT_STARTED: ProvisioningStage.CREATING_SERVER,
    ProvisioningStage.CREATING_SERVER: ProvisioningStage.INSTALLING,
    ProvisioningStage.INSTALLING: ProvisioningStage.REGISTERING,
    ProvisioningStage.REGISTERING: ProvisioningStage.DONE,
}


@dataclass(kw_only=True)
class ProvisioningJob:
    """
    Progress of one cloud operation.

    Stages only move forward one step at a time, or to FAILED from any
    non-terminal stage. Progress never decreases.
    """

    provider_name: str
    operation: CloudOperation
    stage: ProvisioningStage = ProvisioningStage.NOT_STARTED
    progress: float = 0.0
    result: Any = None
    error: BaseException | None = None

    def advance(self, stage: ProvisioningStage) -> None:
        """
        Move to the next stage.

        Raises:
            ProvisioningError: If ``stage`` does not directly follow the current stage.
        """
        if _NEXT_STAGE.get(self.stage) is not stage:
            msg = f"Cannot move from {self.stage} to {stage}"
            raise ProvisioningError(msg, stage=self.stage)
        self.stage = stage

    def report_progress(self, progress: float) -> float:
        """Record progress, ignoring values below the current one. Returns the stored value."""
        if not self.stage.is_terminal:
            self.progress = max(self.progress, min(progress, 100.0))
        return self.progress

    def complete(self, result: Any = None) -> None:
        self.advance(ProvisioningStage.DONE)
        self.progress = 100.0
        self.result = result

    def fail(self, error: BaseException) -> None:
        if self.stage.is_terminal:
            msg = f"Cannot fail a job in terminal stage {self.stage}"
            raise ProvisioningError(msg, stage=self.stage)
        self.stage = ProvisioningStage.FAILED
        self.error = error


@dataclass(frozen=True, kw_only=True)
class CloudOperationArgs:
    """Cloud operation request from the UI."""

    provider_name: str
    operation: CloudOperation
    region: str | None = None


@dataclass(frozen=True, kw_only=True)
class CloudOperationResult:
    """Cloud operation response. ``has_oauth`` is only set for HAS_OAUTH."""

    has_oauth: bool | None = None


@dataclass(frozen=True, kw_only=True)
class ServerInfo:
    """
    Connection details of a newly created cloud server.

    Attributes:
        host: Public IPv4 address.
        ssh_port: SSH port.
        private_key: SSH private key for the install user.
        raw: Full provider response.
    """

    host: str
    ssh_port: int
    private_key: str
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_provider(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            host=data["network"]["ipv4"],
            ssh_port=int(data["network"]["ssh_port"]),
            private_key=data["ssh"]["private"],
            raw=data,
        )
