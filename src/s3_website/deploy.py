"""Entry points: provision-and-sync (``deploy``) and deploy-only (``sync``)."""

from __future__ import annotations

import logging
import time

from . import metrics
from .builders.provider import create_certificate_provider, create_provider_from_config
from .constants import (
    COMPONENT_DEPLOY,
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    EVENT_REASON_SYNC_FINISHED,
    EVENT_REASON_SYNC_STARTED,
)
from .content.diff import diff
from .content.executor import TransferExecutor
from .content.remote import fetch_remote_objects
from .content.report import aggregate
from .content.scanner import scan_local_tree
from .exceptions import S3WebsiteError
from .logging import log_deploy_event
from .models import Config, DeploymentReport, ProvisioningState
from .provisioning import Provisioner
from .services.certs.base import CertificateClient
from .services.s3.base import ObjectStore
from .tracing import trace_span
from .utils.context import with_run_id

logger = logging.getLogger(__name__)


def sync(
    bucket: str,
    local_root: str,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
    store: ObjectStore | None = None,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    include_hidden: bool = True,
    exclude: tuple[str, ...] = (),
    site_url: str | None = None,
    cert_id: str | None = None,
    provisioning: ProvisioningState | None = None,
    executor: TransferExecutor | None = None,
    base_delay: float = DEFAULT_BACKOFF_SECONDS,
) -> DeploymentReport:
    """Make the bucket's contents match ``local_root``.

    The local tree is scanned completely before the bucket is touched, and
    the bucket is listed completely before anything is uploaded or deleted.

    Raises:
        ScanError: If the local tree cannot be read
        RemoteListError: If the bucket cannot be listed
    """
    if store is None:
        store = create_provider_from_config(Config(domain=bucket, concurrency=concurrency_limit))

    with with_run_id(), trace_span("sync", component=COMPONENT_DEPLOY, attributes={"bucket.name": bucket}):
        start_time = time.time()
        try:
            local_records = {
                record.path: record
                for record in scan_local_tree(local_root, include_hidden=include_hidden, exclude=exclude)
            }
            remote_records = fetch_remote_objects(store, bucket, max_retries=max_retries, base_delay=base_delay)
        except S3WebsiteError as e:
            metrics.error_total.labels(component=COMPONENT_DEPLOY, error_type=type(e).__name__).inc()
            raise

        plan = diff(local_records.values(), remote_records)
        log_deploy_event(
            logger,
            COMPONENT_DEPLOY,
            event="info",
            reason=EVENT_REASON_SYNC_STARTED,
            message=f"Syncing {local_root} to {bucket}",
            bucket=bucket,
            upload=len(plan.to_upload),
            delete=len(plan.to_delete),
            unchanged=len(plan.unchanged),
        )

        if executor is None:
            executor = TransferExecutor(
                store,
                bucket,
                local_root,
                concurrency=concurrency_limit,
                max_retries=max_retries,
                base_delay=base_delay,
            )
        outcomes = executor.execute(plan, local_records)
        report = aggregate(
            plan,
            outcomes,
            site_url=site_url,
            cert_id=cert_id,
            provisioning=provisioning,
            interrupted=executor.interrupted,
        )

        metrics.sync_duration_seconds.observe(time.time() - start_time)
        log_deploy_event(
            logger,
            COMPONENT_DEPLOY,
            event="info" if report.ok else "warning",
            reason=EVENT_REASON_SYNC_FINISHED,
            message=f"Sync of {bucket} finished",
            level=logging.INFO if report.ok else logging.WARNING,
            bucket=bucket,
            uploaded=len(report.uploaded),
            updated=len(report.updated),
            removed=len(report.removed),
            errors=len(report.errors),
            interrupted=report.interrupted,
        )
        return report


def deploy(
    config: Config,
    store: ObjectStore | None = None,
    certs: CertificateClient | None = None,
    base_delay: float = DEFAULT_BACKOFF_SECONDS,
) -> DeploymentReport:
    """Provision the website described by ``config`` and push its content.

    Provisioning runs first; content is synced only when ``upload_dir`` is
    set and provisioning reached Ready.

    Raises:
        ProvisionError: If a provisioning stage failed
        ScanError: If the upload directory cannot be read
        RemoteListError: If the bucket cannot be listed
    """
    if store is None:
        store = create_provider_from_config(config)
    if certs is None:
        certs = create_certificate_provider(config)

    with with_run_id():
        try:
            result = Provisioner(store, certs, base_delay=base_delay).run(config)
        except S3WebsiteError as e:
            metrics.error_total.labels(component=COMPONENT_DEPLOY, error_type=type(e).__name__).inc()
            raise

        if not config.upload_dir:
            return DeploymentReport(site_url=result.website_url, cert_id=result.cert_id, provisioning=result.state)

        return sync(
            config.bucket,
            config.upload_dir,
            config.concurrency,
            store,
            max_retries=config.max_retries,
            include_hidden=config.include_hidden,
            exclude=config.exclude,
            site_url=result.website_url,
            cert_id=result.cert_id,
            provisioning=result.state,
            base_delay=base_delay,
        )
