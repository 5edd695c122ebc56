"""Value types shared by the sync engine and the provisioner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_INDEX_DOCUMENT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGION,
    LEGACY_WEBSITE_ENDPOINT_REGIONS,
)
from .exceptions import TransferError


@dataclass(frozen=True)
class Config:
    """Resolved desired state for one website."""

    domain: str
    region: str = DEFAULT_REGION
    index_document: str = DEFAULT_INDEX_DOCUMENT
    error_document: str | None = None
    routes: str | None = None
    cert: str | None = None
    key: str | None = None
    intermediate: str | None = None
    cert_name: str | None = None
    cert_id: str | None = None
    upload_dir: str | None = None
    lock_config: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES
    include_hidden: bool = True
    exclude: tuple[str, ...] = ()
    endpoint_url: str | None = None

    @property
    def bucket(self) -> str:
        return self.domain

    @property
    def wants_certificate(self) -> bool:
        return bool(self.cert_id or (self.cert and self.key))


def website_endpoint(bucket: str, region: str) -> str:
    """Return the host name S3 serves the bucket's website from."""
    separator = "-" if region in LEGACY_WEBSITE_ENDPOINT_REGIONS else "."
    return f"{bucket}.s3-website{separator}{region}.amazonaws.com"


def website_url(bucket: str, region: str) -> str:
    return f"http://{website_endpoint(bucket, region)}/"


@dataclass(frozen=True)
class LocalFileRecord:
    """A regular file under the upload directory."""

    path: str
    fingerprint: str
    size: int


@dataclass(frozen=True)
class RemoteObjectRecord:
    """An object currently stored in the bucket."""

    key: str
    fingerprint: str
    size: int


@dataclass(frozen=True)
class DiffPlan:
    """Partition of every local and remote key into upload, delete and unchanged."""

    to_upload: frozenset[str] = frozenset()
    to_delete: frozenset[str] = frozenset()
    unchanged: frozenset[str] = frozenset()
    new_keys: frozenset[str] = frozenset()

    @property
    def all_keys(self) -> frozenset[str]:
        return self.to_upload | self.to_delete | self.unchanged

    @property
    def is_noop(self) -> bool:
        return not self.to_upload and not self.to_delete


@dataclass(frozen=True)
class TransferOutcome:
    """Result of uploading or deleting a single key."""

    key: str
    action: str
    error: TransferError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProvisioningStage(str, Enum):
    """Named states of the provisioning state machine, in order."""

    ABSENT = "Absent"
    BUCKET_CREATED = "BucketCreated"
    HOSTING_CONFIGURED = "HostingConfigured"
    POLICY_APPLIED = "PolicyApplied"
    ROUTING_APPLIED = "RoutingApplied"
    CERTIFICATE_ATTACHED = "CertificateAttached"
    NO_CERTIFICATE = "NoCertificate"
    READY = "Ready"

    @property
    def rank(self) -> int:
        # CertificateAttached and NoCertificate are alternatives at the same depth
        if self is ProvisioningStage.NO_CERTIFICATE:
            return ProvisioningStage.CERTIFICATE_ATTACHED.rank
        if self is ProvisioningStage.READY:
            return 6
        return list(ProvisioningStage).index(self)


@dataclass(frozen=True)
class StageRecord:
    """A stage reached during a run and whether reaching it mutated anything."""

    stage: ProvisioningStage
    applied: bool


@dataclass(frozen=True)
class ProvisioningState:
    """Snapshot of what has been verified or applied during one run."""

    stage: ProvisioningStage = ProvisioningStage.ABSENT
    history: tuple[StageRecord, ...] = ()
    drift: tuple[ProvisioningStage, ...] = ()

    def advance(self, stage: ProvisioningStage, applied: bool) -> ProvisioningState:
        """Return the state after moving forward to ``stage``.

        Raises:
            ValueError: If ``stage`` is not ahead of the current stage
        """
        if stage.rank <= self.stage.rank:
            raise ValueError(f"cannot move from {self.stage.value} back to {stage.value}")
        return ProvisioningState(
            stage=stage,
            history=self.history + (StageRecord(stage, applied),),
            drift=self.drift,
        )

    def with_drift(self, stage: ProvisioningStage) -> ProvisioningState:
        return ProvisioningState(stage=self.stage, history=self.history, drift=self.drift + (stage,))

    def reached(self, stage: ProvisioningStage) -> bool:
        return any(record.stage is stage for record in self.history)

    @property
    def applied_stages(self) -> tuple[ProvisioningStage, ...]:
        return tuple(record.stage for record in self.history if record.applied)

    @property
    def verified_stages(self) -> tuple[ProvisioningStage, ...]:
        return tuple(record.stage for record in self.history if not record.applied)

    @property
    def is_ready(self) -> bool:
        return self.stage is ProvisioningStage.READY


@dataclass(frozen=True)
class ProvisioningResult:
    """Outcome of a completed provisioning run."""

    state: ProvisioningState
    website_url: str
    cert_id: str | None = None
    distribution_domain: str | None = None


@dataclass(frozen=True)
class DeploymentReport:
    """Everything a deploy or sync run changed, and what failed."""

    uploaded: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    errors: tuple[TransferError, ...] = ()
    site_url: str | None = None
    cert_id: str | None = None
    provisioning: ProvisioningState | None = field(default=None, compare=False)
    interrupted: bool = False

    @property
    def is_empty(self) -> bool:
        """True when nothing was pushed, removed or attempted."""
        return not (self.uploaded or self.updated or self.removed or self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "uploaded": list(self.uploaded),
            "updated": list(self.updated),
            "removed": list(self.removed),
            "errors": [
                {"path": error.item, "cause": error.cause, "retried": error.retried}
                for error in self.errors
            ],
            "url": self.site_url,
        }
        if self.cert_id:
            data["certId"] = self.cert_id
        if self.interrupted:
            data["interrupted"] = True
        if self.provisioning is not None:
            data["provisioning"] = {
                "stage": self.provisioning.stage.value,
                "applied": [stage.value for stage in self.provisioning.applied_stages],
                "verified": [stage.value for stage in self.provisioning.verified_stages],
                "drift": [stage.value for stage in self.provisioning.drift],
            }
        return data
