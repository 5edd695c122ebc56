"""Remote state fetcher: list the bucket's objects with their fingerprints."""

from __future__ import annotations

import logging

from ..constants import COMPONENT_REMOTE, DEFAULT_BACKOFF_SECONDS, DEFAULT_MAX_RETRIES, EVENT_REASON_LIST_FAILED
from ..exceptions import RemoteListError
from ..logging import log_deploy_event
from ..models import RemoteObjectRecord
from ..services.s3.base import ObjectStore
from ..utils.errors import sanitize_exception
from ..utils.retry import RetryError, call_with_retry

logger = logging.getLogger(__name__)


def fetch_remote_objects(
    store: ObjectStore,
    bucket: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BACKOFF_SECONDS,
) -> list[RemoteObjectRecord]:
    """List every object in the bucket.

    Pagination is the store's concern; a failure part way through restarts
    the listing from the first page. An empty bucket yields an empty list.

    Raises:
        RemoteListError: On authorization failure, or once transient
            failures exhaust the retries
    """
    try:
        records = call_with_retry(
            lambda: list(store.list_objects(bucket)),
            operation="list_objects",
            max_retries=max_retries,
            base_delay=base_delay,
        )
    except RetryError as e:
        cause = sanitize_exception(e.error)
        log_deploy_event(
            logger,
            COMPONENT_REMOTE,
            event="error",
            reason=EVENT_REASON_LIST_FAILED,
            message=f"Failed to list bucket {bucket}",
            level=logging.ERROR,
            bucket=bucket,
            cause=cause,
            retried=e.retried,
        )
        raise RemoteListError(bucket, cause, retried=e.retried) from e.error

    logger.info(f"Found {len(records)} objects in bucket {bucket}")
    return records
