"""Redaction of credentials and key material from error causes.

Causes end up in deployment reports, JSON output and logs. botocore messages
can echo request parameters, and certificate uploads carry PEM private keys,
so every cause passes through ``sanitize_exception`` first.
"""

import re

# Whole PEM blocks; the label is kept so the reader knows what was removed
PEM_BLOCK = re.compile(r"-----BEGIN ([A-Z0-9 ]+)-----.*?-----END \1-----", re.DOTALL)

# AWS credential values in "name: value" or "name=value" form
CREDENTIAL_PATTERNS = [
    re.compile(r"(access[_\s]?key[_\s]?id)[:=\s]+[A-Z0-9]{16,128}", re.IGNORECASE),
    re.compile(r"(secret[_\s]?access[_\s]?key)[:=\s]+[A-Za-z0-9/+=]{40}", re.IGNORECASE),
    re.compile(r"(session[_\s]?token)[:=\s]+[A-Za-z0-9/+=]+", re.IGNORECASE),
    re.compile(r"(x-amz-security-token)[:=\s]+[A-Za-z0-9/+=%]+", re.IGNORECASE),
]

# Any other "field: value" whose value is never safe to show
SENSITIVE_FIELDS = (
    "password",
    "secret",
    "credentials",
    "private_key",
    "certificate_body",
    "certificate_chain",
)
_FIELD_PATTERN = re.compile(rf"({'|'.join(SENSITIVE_FIELDS)})\s*[:=]\s*[^\s,;\)]+", re.IGNORECASE)


def sanitize_error_message(message: str) -> str:
    """Return ``message`` with credentials and PEM blocks replaced by markers."""
    sanitized = PEM_BLOCK.sub(r"[REDACTED \1]", message)
    for pattern in CREDENTIAL_PATTERNS:
        sanitized = pattern.sub(r"\1: [REDACTED]", sanitized)
    return _FIELD_PATTERN.sub(r"\1: [REDACTED]", sanitized)


def sanitize_exception(error: BaseException) -> str:
    """Describe an exception safely.

    An exception without a message is described by its type name, so a
    report never carries an empty cause.
    """
    return sanitize_error_message(str(error) or type(error).__name__)
