"""Retry with exponential backoff for object store and IAM calls."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, TypeVar

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .. import metrics
from ..constants import AUTH_ERROR_CODES, DEFAULT_BACKOFF_SECONDS, TRANSIENT_ERROR_CODES

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NETWORK_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
    TimeoutError,
    ConnectionError,
)


class RetryError(Exception):
    """A call failed for good, either terminally or after exhausting retries."""

    def __init__(self, error: BaseException, attempts: int) -> None:
        self.error = error
        self.attempts = attempts
        super().__init__(str(error))

    @property
    def retried(self) -> bool:
        return self.attempts > 1


def get_error_code(error: BaseException) -> str | None:
    """Return the service error code of a botocore ClientError, if any."""
    if not isinstance(error, ClientError):
        return None
    code = error.response.get("Error", {}).get("Code")
    if code:
        return str(code)
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return str(status) if status else None


def is_auth_error(error: BaseException) -> bool:
    """Check whether an error means the caller is not authorized."""
    return get_error_code(error) in AUTH_ERROR_CODES


def is_transient_error(error: BaseException) -> bool:
    """Check whether an error is worth retrying.

    Network timeouts, dropped connections, throttling and 5xx responses are
    transient. Authorization failures never are.
    """
    if isinstance(error, _NETWORK_ERRORS):
        return True
    code = get_error_code(error)
    if code is None or code in AUTH_ERROR_CODES:
        return False
    return code in TRANSIENT_ERROR_CODES


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BACKOFF_SECONDS, max_delay: float = 20.0) -> float:
    """Delay before retry number ``attempt`` (1-based): base, 2*base, 4*base, ..."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def wait_before_retry(delay: float, cancel_event: threading.Event | None = None) -> bool:
    """Sleep for ``delay`` seconds, waking early if ``cancel_event`` is set.

    Returns:
        True if the wait ended because the run was cancelled
    """
    if cancel_event is None:
        time.sleep(delay)
        return False
    return cancel_event.wait(delay)


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    operation: str,
    max_retries: int,
    base_delay: float = DEFAULT_BACKOFF_SECONDS,
    cancel_event: threading.Event | None = None,
    **kwargs: Any,
) -> T:
    """Call ``func`` and retry transient failures with exponential backoff.

    The retry counter is local to this call.

    Args:
        func: Callable to invoke
        operation: Operation name for logs and metrics
        max_retries: Retries allowed after the first attempt
        base_delay: Delay before the first retry in seconds
        cancel_event: When set, no further attempt is started and a pending
            backoff ends at once

    Returns:
        Whatever ``func`` returns

    Raises:
        RetryError: Wrapping the last error, with the number of attempts made
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not is_transient_error(e) or attempt > max_retries:
                raise RetryError(e, attempts=attempt) from e
            if cancel_event is not None and cancel_event.is_set():
                raise RetryError(e, attempts=attempt) from e

            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                f"Transient failure in {operation} (attempt {attempt} of {max_retries + 1}), "
                f"retrying in {delay:.2f}s: {e}"
            )
            metrics.transfer_retries_total.labels(operation=operation).inc()
            if wait_before_retry(delay, cancel_event):
                raise RetryError(e, attempts=attempt) from e
