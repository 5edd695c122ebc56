"""Utility functions for s3-website."""

from .context import get_context_dict, get_run_id, with_run_id
from .errors import sanitize_error_message, sanitize_exception
from .retry import RetryError, call_with_retry, is_auth_error, is_transient_error

__all__ = [
    "get_context_dict",
    "get_run_id",
    "with_run_id",
    "sanitize_error_message",
    "sanitize_exception",
    "RetryError",
    "call_with_retry",
    "is_auth_error",
    "is_transient_error",
]
