"""Transfer executor: apply a diff plan with a bounded worker pool."""

from __future__ import annotations

import base64
import logging
import mimetypes
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Mapping

from .. import metrics
from ..constants import (
    ACTION_DELETE,
    ACTION_UPLOAD,
    CAUSE_CANCELLED,
    COMPONENT_EXECUTOR,
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    EVENT_REASON_TRANSFER_FAILED,
)
from ..exceptions import TransferError
from ..logging import log_deploy_event
from ..models import DiffPlan, LocalFileRecord, TransferOutcome
from ..services.s3.base import ObjectStore
from ..utils.context import copy_context_for_worker
from ..utils.errors import sanitize_exception
from ..utils.retry import RetryError, call_with_retry
from .report import OutcomeCollector

logger = logging.getLogger(__name__)


def content_md5(fingerprint: str) -> str:
    """Convert a hex MD5 fingerprint to the base64 form of the Content-MD5 header."""
    return base64.b64encode(bytes.fromhex(fingerprint)).decode("ascii")


def guess_content_type(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or "application/octet-stream"


class TransferExecutor:
    """Uploads and deletes objects, one independent work item per key.

    A failing item never stops the others; its failure is recorded as a
    TransferError outcome. ``cancel()`` or Ctrl-C stops new items from
    starting while requests already in flight finish.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        local_root: str,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BACKOFF_SECONDS,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.store = store
        self.bucket = bucket
        self.local_root = local_root
        self.concurrency = concurrency
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._cancel_event = threading.Event()
        self._interrupted = False

    def cancel(self) -> None:
        """Stop issuing new work; in-flight operations finish normally."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def interrupted(self) -> bool:
        """True if a KeyboardInterrupt cut the last run short."""
        return self._interrupted

    def execute(
        self,
        plan: DiffPlan,
        local_records: Mapping[str, LocalFileRecord] | None = None,
    ) -> list[TransferOutcome]:
        """Run every upload and delete in the plan.

        Args:
            plan: The diff plan; ``unchanged`` keys are never touched
            local_records: Scanned records by path, used for Content-MD5

        Returns:
            One outcome per key in ``to_upload`` and ``to_delete``. A
            KeyboardInterrupt cancels the run instead of propagating: items
            that never started come back with cause ``cancelled``
        """
        local_records = local_records or {}
        work = [(ACTION_UPLOAD, key) for key in sorted(plan.to_upload)]
        work += [(ACTION_DELETE, key) for key in sorted(plan.to_delete)]
        if not work:
            return []

        collector = OutcomeCollector()
        pool = ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="s3-website-transfer")
        futures: dict[tuple[str, str], Future[TransferOutcome]] = {}
        try:
            for action, key in work:
                # Each worker runs in a copy of the caller's context to keep the run ID
                context = copy_context_for_worker()
                futures[(action, key)] = pool.submit(context.run, self._run_item, action, key, local_records.get(key))

            for future in as_completed(futures.values()):
                collector.add(future.result())
        except KeyboardInterrupt:
            logger.warning("Interrupted, waiting for in-flight transfers to finish")
            self._interrupted = True
            self.cancel()
        finally:
            pool.shutdown(wait=True, cancel_futures=self.cancelled)

        if self.cancelled:
            self._collect_remaining(work, futures, collector)
        return collector.snapshot()

    def _collect_remaining(
        self,
        work: list[tuple[str, str]],
        futures: dict[tuple[str, str], Future[TransferOutcome]],
        collector: OutcomeCollector,
    ) -> None:
        recorded = {(outcome.action, outcome.key) for outcome in collector.snapshot()}
        for action, key in work:
            if (action, key) in recorded:
                continue
            future = futures.get((action, key))
            if future is None or future.cancelled():
                outcome = TransferOutcome(key, action, TransferError(key, CAUSE_CANCELLED))
            else:
                outcome = future.result()
            collector.add(outcome)

    def _run_item(self, action: str, key: str, record: LocalFileRecord | None) -> TransferOutcome:
        if self.cancelled:
            return TransferOutcome(key, action, TransferError(key, CAUSE_CANCELLED))

        try:
            if action == ACTION_UPLOAD:
                self._upload(key, record)
            else:
                call_with_retry(
                    self.store.delete_object,
                    self.bucket,
                    key,
                    operation="delete_object",
                    max_retries=self.max_retries,
                    base_delay=self.base_delay,
                    cancel_event=self._cancel_event,
                )
        except RetryError as e:
            return self._failed(action, key, sanitize_exception(e.error), e.retried)
        except Exception as e:
            return self._failed(action, key, sanitize_exception(e), False)

        metrics.transfer_operations_total.labels(operation=action, result="success").inc()
        logger.info(f"{'Uploaded' if action == ACTION_UPLOAD else 'Deleted'} {key}")
        return TransferOutcome(key, action)

    def _upload(self, key: str, record: LocalFileRecord | None) -> None:
        path = os.path.join(self.local_root, *key.split("/"))
        with open(path, "rb") as f:
            body = f.read()

        call_with_retry(
            self.store.put_object,
            self.bucket,
            key,
            body,
            content_type=guess_content_type(key),
            content_md5=content_md5(record.fingerprint) if record is not None else None,
            operation="put_object",
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            cancel_event=self._cancel_event,
        )

    def _failed(self, action: str, key: str, cause: str, retried: bool) -> TransferOutcome:
        metrics.transfer_operations_total.labels(operation=action, result="failed").inc()
        log_deploy_event(
            logger,
            COMPONENT_EXECUTOR,
            event="error",
            reason=EVENT_REASON_TRANSFER_FAILED,
            message=f"Failed to {action} {key}",
            level=logging.ERROR,
            path=key,
            cause=cause,
            retried=retried,
        )
        return TransferOutcome(key, action, TransferError(key, cause, retried))
