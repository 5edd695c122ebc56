"""Provision static-website buckets and keep their contents in sync with a local directory."""

from .deploy import deploy, sync
from .exceptions import (
    ConfigError,
    ProvisionError,
    RemoteListError,
    S3WebsiteError,
    ScanError,
    TransferError,
)
from .models import (
    Config,
    DeploymentReport,
    DiffPlan,
    LocalFileRecord,
    ProvisioningStage,
    ProvisioningState,
    RemoteObjectRecord,
)

__version__ = "1.0.0"

__all__ = [
    "deploy",
    "sync",
    "Config",
    "DeploymentReport",
    "DiffPlan",
    "LocalFileRecord",
    "ProvisioningStage",
    "ProvisioningState",
    "RemoteObjectRecord",
    "ConfigError",
    "ProvisionError",
    "RemoteListError",
    "S3WebsiteError",
    "ScanError",
    "TransferError",
]
