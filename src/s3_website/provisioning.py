"""Provisioning state machine for website buckets.

Stages run strictly in order:

    Absent -> BucketCreated -> HostingConfigured -> PolicyApplied
           -> RoutingApplied -> CertificateAttached | NoCertificate -> Ready

Every stage reads the current remote configuration first and only issues a
mutating call when it differs from the desired Config, so a re-run after a
failure resumes where the previous run stopped. Nothing is ever rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from . import metrics
from .builders.website import (
    blocks_public_policy,
    create_public_read_policy,
    grants_public_read,
    hosting_matches,
    load_routing_rules,
    routing_rules_match,
)
from .constants import (
    COMPONENT_PROVISIONER,
    DEFAULT_BACKOFF_SECONDS,
    EVENT_REASON_DRIFT_DETECTED,
    EVENT_REASON_STAGE_APPLIED,
    EVENT_REASON_STAGE_FAILED,
    EVENT_REASON_STAGE_VERIFIED,
    REASON_BUCKET_NAME_TAKEN,
    REASON_INVALID_ROUTING_RULES,
    REASON_TRANSITION_FAILED,
)
from .exceptions import ProvisionError
from .logging import log_deploy_event
from .models import (
    Config,
    ProvisioningResult,
    ProvisioningStage,
    ProvisioningState,
    website_endpoint,
    website_url,
)
from .services.certs.base import CertificateClient
from .services.s3.base import ObjectStore
from .tracing import trace_span
from .utils.errors import sanitize_exception
from .utils.retry import RetryError, call_with_retry, get_error_code

logger = logging.getLogger(__name__)


class StepResult(str, Enum):
    """What a stage had to do to reach its target."""

    VERIFIED = "verified"
    APPLIED = "applied"
    DRIFT = "drift"


@dataclass
class _Run:
    """Mutable bookkeeping for a single provisioning run."""

    config: Config
    locked: bool = False
    website: dict[str, Any] | None = None
    cert_id: str | None = None
    distribution_domain: str | None = None


class Provisioner:
    """Drives a bucket to the Ready state described by a Config."""

    def __init__(
        self,
        store: ObjectStore,
        certs: CertificateClient | None = None,
        base_delay: float = DEFAULT_BACKOFF_SECONDS,
    ) -> None:
        self.store = store
        self.certs = certs
        self.base_delay = base_delay

    def run(self, config: Config) -> ProvisioningResult:
        """Provision the website bucket.

        Raises:
            ProvisionError: With the last stage reached and the cause
        """
        state = ProvisioningState()
        run = _Run(config=config)

        with trace_span("provision", component=COMPONENT_PROVISIONER, attributes={"bucket.name": config.bucket}):
            if config.lock_config:
                run.locked = self._already_provisioned(run, state)
                if run.locked:
                    self._log(config, "Configuration is locked, verifying without changes", reason="LockConfig")

            transitions: list[tuple[ProvisioningStage, Callable[[_Run], StepResult]]] = [
                (ProvisioningStage.BUCKET_CREATED, self._ensure_bucket),
                (ProvisioningStage.HOSTING_CONFIGURED, self._ensure_hosting),
                (ProvisioningStage.POLICY_APPLIED, self._ensure_policy),
                (ProvisioningStage.ROUTING_APPLIED, self._ensure_routing),
            ]
            if config.wants_certificate:
                transitions.append((ProvisioningStage.CERTIFICATE_ATTACHED, self._ensure_certificate))
            else:
                transitions.append((ProvisioningStage.NO_CERTIFICATE, self._no_certificate))

            for target, step in transitions:
                state = self._transition(state, target, step, run)

            state = state.advance(ProvisioningStage.READY, applied=False)

        self._log(config, f"Website {config.bucket} is ready", reason="Ready", stage=state.stage.value)
        return ProvisioningResult(
            state=state,
            website_url=website_url(config.bucket, config.region),
            cert_id=run.cert_id,
            distribution_domain=run.distribution_domain,
        )

    def _transition(
        self,
        state: ProvisioningState,
        target: ProvisioningStage,
        step: Callable[[_Run], StepResult],
        run: _Run,
    ) -> ProvisioningState:
        config = run.config
        with trace_span(f"provision.{target.value}", component=COMPONENT_PROVISIONER):
            try:
                result = step(run)
            except ProvisionError:
                metrics.provisioning_transitions_total.labels(stage=target.value, result="failed").inc()
                raise
            except Exception as e:
                error = e.error if isinstance(e, RetryError) else e
                cause = sanitize_exception(error)
                metrics.provisioning_transitions_total.labels(stage=target.value, result="failed").inc()
                self._log(
                    config,
                    f"Failed to reach {target.value}: {cause}",
                    reason=EVENT_REASON_STAGE_FAILED,
                    level=logging.ERROR,
                    stage=state.stage.value,
                    target=target.value,
                )
                raise ProvisionError(state.stage, cause, target=target, reason=REASON_TRANSITION_FAILED) from error

        metrics.provisioning_transitions_total.labels(stage=target.value, result=result.value).inc()
        if result is StepResult.DRIFT:
            metrics.drift_detected_total.labels(stage=target.value).inc()
            self._log(
                config,
                f"Drift detected at {target.value}, left unchanged because the configuration is locked",
                reason=EVENT_REASON_DRIFT_DETECTED,
                level=logging.WARNING,
                stage=target.value,
            )
            return state.advance(target, applied=False).with_drift(target)

        reason = EVENT_REASON_STAGE_APPLIED if result is StepResult.APPLIED else EVENT_REASON_STAGE_VERIFIED
        self._log(config, f"{target.value} {result.value}", reason=reason, stage=target.value)
        return state.advance(target, applied=result is StepResult.APPLIED)

    def _call(self, run: _Run, func: Callable[..., Any], *args: Any, operation: str, **kwargs: Any) -> Any:
        return call_with_retry(
            func,
            *args,
            operation=operation,
            max_retries=run.config.max_retries,
            base_delay=self.base_delay,
            **kwargs,
        )

    def _already_provisioned(self, run: _Run, state: ProvisioningState) -> bool:
        """Check whether the bucket was fully provisioned by an earlier run."""
        bucket = run.config.bucket
        try:
            if not self._call(run, self.store.bucket_exists, bucket, operation="head_bucket"):
                return False
            website = self._call(run, self.store.get_bucket_website, bucket, operation="get_bucket_website")
            policy = self._call(run, self.store.get_bucket_policy, bucket, operation="get_bucket_policy")
        except RetryError as e:
            raise ProvisionError(state.stage, sanitize_exception(e.error)) from e.error
        return website is not None and policy is not None

    def _ensure_bucket(self, run: _Run) -> StepResult:
        config = run.config
        if self._call(run, self.store.bucket_exists, config.bucket, operation="head_bucket"):
            return StepResult.VERIFIED
        if run.locked:
            return StepResult.DRIFT

        try:
            self._call(run, self.store.create_bucket, config.bucket, config.region, operation="create_bucket")
        except RetryError as e:
            code = get_error_code(e.error)
            if code == "BucketAlreadyOwnedByYou":
                return StepResult.VERIFIED
            if code == "BucketAlreadyExists":
                raise ProvisionError(
                    ProvisioningStage.ABSENT,
                    f"bucket name {config.bucket} is already taken by another account",
                    target=ProvisioningStage.BUCKET_CREATED,
                    reason=REASON_BUCKET_NAME_TAKEN,
                ) from e.error
            raise
        return StepResult.APPLIED

    def _ensure_hosting(self, run: _Run) -> StepResult:
        config = run.config
        run.website = self._call(run, self.store.get_bucket_website, config.bucket, operation="get_bucket_website")
        if hosting_matches(run.website, config.index_document, config.error_document):
            return StepResult.VERIFIED
        if run.locked:
            return StepResult.DRIFT

        # Routing rules are the next stage's business; carry them over untouched
        current_rules = (run.website or {}).get("RoutingRules")
        self._call(
            run,
            self.store.put_bucket_website,
            config.bucket,
            config.index_document,
            config.error_document,
            current_rules,
            operation="put_bucket_website",
        )
        run.website = {
            "IndexDocument": {"Suffix": config.index_document},
            **({"ErrorDocument": {"Key": config.error_document}} if config.error_document else {}),
            **({"RoutingRules": current_rules} if current_rules else {}),
        }
        return StepResult.APPLIED

    def _ensure_policy(self, run: _Run) -> StepResult:
        bucket = run.config.bucket
        current = self._call(run, self.store.get_bucket_policy, bucket, operation="get_bucket_policy")
        if grants_public_read(current, bucket):
            return StepResult.VERIFIED
        if run.locked:
            return StepResult.DRIFT

        access_block = self._call(run, self.store.get_public_access_block, bucket, operation="get_public_access_block")
        if blocks_public_policy(access_block):
            self._call(run, self.store.delete_public_access_block, bucket, operation="delete_public_access_block")
        self._call(
            run,
            self.store.put_bucket_policy,
            bucket,
            create_public_read_policy(bucket, current),
            operation="put_bucket_policy",
        )
        return StepResult.APPLIED

    def _ensure_routing(self, run: _Run) -> StepResult:
        config = run.config
        desired: list[dict[str, Any]] = []
        if config.routes:
            try:
                desired = load_routing_rules(config.routes)
            except (OSError, ValueError) as e:
                raise ProvisionError(
                    ProvisioningStage.POLICY_APPLIED,
                    sanitize_exception(e),
                    target=ProvisioningStage.ROUTING_APPLIED,
                    reason=REASON_INVALID_ROUTING_RULES,
                ) from e

        current = (run.website or {}).get("RoutingRules")
        if routing_rules_match(current, desired):
            return StepResult.VERIFIED
        if run.locked:
            return StepResult.DRIFT

        self._call(
            run,
            self.store.put_bucket_website,
            config.bucket,
            config.index_document,
            config.error_document,
            desired or None,
            operation="put_bucket_website",
        )
        return StepResult.APPLIED

    def _ensure_certificate(self, run: _Run) -> StepResult:
        config = run.config
        if self.certs is None:
            raise ValueError("a certificate was requested but no certificate client is configured")

        applied = False
        drift = False
        if config.cert_id:
            run.cert_id = config.cert_id
        else:
            name = config.cert_name or config.domain
            run.cert_id = self._call(run, self.certs.find_server_certificate, name, operation="get_server_certificate")
            if run.cert_id is None:
                if run.locked:
                    return StepResult.DRIFT
                run.cert_id = self._call(
                    run,
                    self.certs.upload_server_certificate,
                    name,
                    config.cert,
                    config.key,
                    config.intermediate,
                    operation="upload_server_certificate",
                )
                applied = True

        current = self._call(run, self.certs.get_domain_certificate, config.domain, operation="get_domain_certificate")
        if current != run.cert_id:
            if run.locked:
                drift = True
            else:
                run.distribution_domain = self._call(
                    run,
                    self.certs.attach_certificate_to_domain,
                    run.cert_id,
                    config.domain,
                    website_endpoint(config.bucket, config.region),
                    operation="attach_certificate_to_domain",
                )
                applied = True

        if drift:
            return StepResult.DRIFT
        return StepResult.APPLIED if applied else StepResult.VERIFIED

    def _no_certificate(self, run: _Run) -> StepResult:
        return StepResult.VERIFIED

    def _log(
        self,
        config: Config,
        message: str,
        reason: str,
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_deploy_event(
            logger,
            COMPONENT_PROVISIONER,
            event=logging.getLevelName(level).lower(),
            reason=reason,
            message=message,
            level=level,
            bucket=config.bucket,
            **kwargs,
        )
