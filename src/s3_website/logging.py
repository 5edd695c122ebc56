"""Structured logging configuration for s3-website."""

import json
import logging
import sys
from typing import Any

from .constants import TOOL_NAME
from .utils.context import get_context_dict


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging on stderr; stdout carries the report."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def log_deploy_event(
    logger: logging.Logger,
    component: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured deployment event."""
    log_data = get_context_dict({
        "tool": TOOL_NAME,
        "component": component,
        "event": event,
        "reason": reason,
        "message": message,
    })
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Remove secret fields from log data."""
    secret_fields = {
        "access_key",
        "secret_key",
        "session_token",
        "password",
        "private_key",
        "certificate_body",
        "certificate_chain",
    }
    sanitized = log_data.copy()
    for field in secret_fields:
        if field in sanitized and sanitized[field] is not None:
            sanitized[field] = "***REDACTED***"
    return sanitized
