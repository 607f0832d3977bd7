"""
Credential resolution for the Google Cloud Storage backend.

Credentials may be given inline (a mapping or a JSON string), as a path to
a service account key file, or left out entirely, in which case the
process-wide ``GOOGLE_APPLICATION_CREDENTIALS`` location is used.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .cloud_storage import ConfigError, ErrorCode

logger = logging.getLogger(__name__)

CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"


def resolve_credentials(
    value: Any,
    root_dir: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any] | None:
    """
    Normalize a credentials value into a service account mapping.

    Args:
        value: Mapping, JSON string, key file path, or None
        root_dir: Base directory for relative key file paths
        environ: Environment to read the fallback location from

    Returns:
        The parsed credentials, or None when none are available

    Raises:
        ConfigError: If inline JSON is malformed or the key file cannot be read
    """
    if environ is None:
        environ = os.environ

    if not value and environ.get(CREDENTIALS_ENV_VAR):
        value = environ[CREDENTIALS_ENV_VAR]
        logger.debug(f"Using credentials location from {CREDENTIALS_ENV_VAR}")

    if not value:
        return None
    if isinstance(value, Mapping):
        return dict(value)
    if not isinstance(value, str):
        raise ConfigError(
            f"Credentials of type {type(value).__name__} are not supported",
            error_code=ErrorCode.CREDENTIALS_PARSE_FAILED.value,
        )

    value = value.strip()
    if not value:
        return None
    if value.startswith("{"):
        return _parse_inline(value)
    return _read_key_file(value, root_dir)


def _parse_inline(text: str) -> dict[str, Any]:
    try:
        credentials = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(
            "Credentials could not be parsed",
            error_code=ErrorCode.CREDENTIALS_PARSE_FAILED.value,
        ) from e
    if not isinstance(credentials, dict):
        raise ConfigError(
            "Credentials could not be parsed",
            error_code=ErrorCode.CREDENTIALS_PARSE_FAILED.value,
        )
    return credentials


def _read_key_file(location: str, root_dir: str | Path | None) -> dict[str, Any]:
    path = Path(location)
    if not path.is_absolute():
        path = Path(root_dir if root_dir is not None else Path.cwd()) / path
    cred_path = os.path.normpath(path)

    try:
        with open(cred_path, encoding="utf-8") as f:
            credentials = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(
            f"Credentials could not be read [{cred_path}]",
            error_code=ErrorCode.CREDENTIALS_READ_FAILED.value,
            details={"path": cred_path},
        ) from e
    if not isinstance(credentials, dict):
        raise ConfigError(
            f"Credentials could not be read [{cred_path}]",
            error_code=ErrorCode.CREDENTIALS_READ_FAILED.value,
            details={"path": cred_path},
        )

    logger.debug(f"Loaded credentials from {cred_path}")
    return credentials
