"""Result aggregation: turn transfer outcomes into a deployment report."""

from __future__ import annotations

import threading
from typing import Iterable

from ..constants import ACTION_DELETE, ACTION_UPLOAD
from ..models import DeploymentReport, DiffPlan, ProvisioningState, TransferOutcome


class OutcomeCollector:
    """Append-only, thread-safe list of transfer outcomes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: list[TransferOutcome] = []

    def add(self, outcome: TransferOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def snapshot(self) -> list[TransferOutcome]:
        with self._lock:
            return list(self._outcomes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)


def aggregate(
    plan: DiffPlan,
    outcomes: Iterable[TransferOutcome],
    site_url: str | None = None,
    cert_id: str | None = None,
    provisioning: ProvisioningState | None = None,
    interrupted: bool = False,
) -> DeploymentReport:
    """Build the deployment report for one run.

    A failed item lands only in ``errors``. Whether a successful upload is
    new or an update comes from the plan, not from the store.
    """
    uploaded: list[str] = []
    updated: list[str] = []
    removed: list[str] = []
    errors = []

    for outcome in outcomes:
        if outcome.error is not None:
            errors.append(outcome.error)
        elif outcome.action == ACTION_UPLOAD:
            if outcome.key in plan.new_keys:
                uploaded.append(outcome.key)
            else:
                updated.append(outcome.key)
        elif outcome.action == ACTION_DELETE:
            removed.append(outcome.key)
        else:
            raise ValueError(f"unknown transfer action {outcome.action!r}")

    return DeploymentReport(
        uploaded=tuple(sorted(uploaded)),
        updated=tuple(sorted(updated)),
        removed=tuple(sorted(removed)),
        errors=tuple(sorted(errors, key=lambda error: error.item)),
        site_url=site_url,
        cert_id=cert_id,
        provisioning=provisioning,
        interrupted=interrupted,
    )
