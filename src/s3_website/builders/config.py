"""Builder for resolved website configurations."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from ..constants import (
    CONFIG_FILE_NAME,
    DEFAULT_CONCURRENCY,
    DEFAULT_INDEX_DOCUMENT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGION,
)
from ..exceptions import ConfigError
from ..models import Config

logger = logging.getLogger(__name__)

# Keys written back to the config file; certificate material never is
PERSISTED_KEYS = ("region", "domain", "index", "error", "routes", "certId", "uploadDir", "exclude")


def _read_pem(path: str | None, label: str) -> str | None:
    if not path:
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise ConfigError(f"cannot read {label} file {path}: {e.strerror or e}") from e


def _int_setting(data: dict[str, Any], key: str, env_var: str, default: int) -> int:
    value = data.get(key, os.getenv(env_var, default))
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from e
    if number < 0:
        raise ConfigError(f"{key} must not be negative")
    return number


def create_config_from_dict(data: dict[str, Any]) -> Config:
    """Create a Config from config-file style keys.

    Args:
        data: Merged settings using the config file's camelCase keys

    Returns:
        Immutable Config; certificate files are read into memory here

    Raises:
        ConfigError: If required settings are missing or invalid
    """
    domain = data.get("domain")
    if not domain:
        raise ConfigError("domain is required")

    cert_path = data.get("cert")
    key_path = data.get("key")
    if bool(cert_path) != bool(key_path):
        raise ConfigError("cert and key must be supplied together")

    concurrency = _int_setting(data, "concurrency", "S3_WEBSITE_CONCURRENCY", DEFAULT_CONCURRENCY)
    if concurrency < 1:
        raise ConfigError("concurrency must be at least 1")

    exclude = data.get("exclude") or ()
    if isinstance(exclude, str):
        exclude = (exclude,)

    return Config(
        domain=domain,
        region=data.get("region") or DEFAULT_REGION,
        index_document=data.get("index") or DEFAULT_INDEX_DOCUMENT,
        error_document=data.get("error") or None,
        routes=data.get("routes") or None,
        cert=_read_pem(cert_path, "certificate"),
        key=_read_pem(key_path, "private key"),
        intermediate=_read_pem(data.get("intermediate"), "intermediate certificate"),
        cert_name=data.get("certName") or None,
        cert_id=data.get("certId") or None,
        upload_dir=data.get("uploadDir") or None,
        lock_config=bool(data.get("lockConfig", False)),
        concurrency=concurrency,
        max_retries=_int_setting(data, "maxRetries", "S3_WEBSITE_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        include_hidden=bool(data.get("includeHidden", True)),
        exclude=tuple(exclude),
        endpoint_url=data.get("endpointUrl") or None,
    )


def load_config_file(path: str = CONFIG_FILE_NAME) -> dict[str, Any]:
    """Load the config file; a missing file is an empty config."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")
    return data


def merge_settings(file_settings: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge settings; overrides win unless they are None or empty."""
    merged = dict(file_settings)
    for key, value in overrides.items():
        if value is not None and value != "" and value is not False:
            merged[key] = value
    return merged


def save_config(path: str, settings: dict[str, Any]) -> None:
    """Write the non-secret settings back to the config file."""
    persisted = {key: settings[key] for key in PERSISTED_KEYS if settings.get(key)}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(persisted, f, indent=2, sort_keys=True)
        f.write("\n")
    logger.debug(f"Saved settings to {path}")


def resolve_config(overrides: dict[str, Any], path: str = CONFIG_FILE_NAME) -> Config:
    """Resolve the final Config from the config file and command-line overrides.

    Nothing is written here; see ``persist_settings``.
    """
    return create_config_from_dict(merge_settings(load_config_file(path), overrides))


def persist_settings(overrides: dict[str, Any], path: str = CONFIG_FILE_NAME) -> bool:
    """Write the merged settings back to ``path`` unless ``lockConfig`` is set.

    Called once a command has finished, so a failed run leaves the config
    file as it was.

    Returns:
        True if the file was written
    """
    settings = merge_settings(load_config_file(path), overrides)
    if settings.get("lockConfig"):
        return False
    save_config(path, settings)
    return True
