"""Exceptions raised by s3-website."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ProvisioningStage


class S3WebsiteError(Exception):
    """Base class for all s3-website errors."""


class ConfigError(S3WebsiteError):
    """The configuration could not be resolved into a valid Config."""


class ScanError(S3WebsiteError):
    """The local upload directory could not be read."""

    def __init__(self, path: str, cause: str) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"cannot scan {path}: {cause}")


class RemoteListError(S3WebsiteError):
    """Listing the bucket failed after retries or was not authorized."""

    def __init__(self, bucket: str, cause: str, retried: bool = False) -> None:
        self.bucket = bucket
        self.cause = cause
        self.retried = retried
        super().__init__(f"cannot list bucket {bucket}: {cause}")


class TransferError(S3WebsiteError):
    """A single upload or delete failed.

    Recorded in the deployment report, never raised out of a sync run.
    """

    def __init__(self, item: str, cause: str, retried: bool = False) -> None:
        self.item = item
        self.cause = cause
        self.retried = retried
        super().__init__(f"{item}: {cause}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransferError):
            return NotImplemented
        return (self.item, self.cause, self.retried) == (other.item, other.cause, other.retried)

    def __hash__(self) -> int:
        return hash((self.item, self.cause, self.retried))

    def __repr__(self) -> str:
        return f"TransferError(item={self.item!r}, cause={self.cause!r}, retried={self.retried!r})"


class ProvisionError(S3WebsiteError):
    """A provisioning transition failed.

    ``stage`` is the last state reached; nothing before it is rolled back.
    """

    def __init__(
        self,
        stage: ProvisioningStage,
        cause: str,
        target: ProvisioningStage | None = None,
        reason: str = "TransitionFailed",
    ) -> None:
        self.stage = stage
        self.cause = cause
        self.target = target
        self.reason = reason
        where = f" while moving to {target.value}" if target is not None else ""
        super().__init__(f"provisioning halted at {stage.value}{where}: {cause}")
