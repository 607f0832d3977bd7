"""
Google Cloud Storage module for file uploads.

This module provides the storage interface shared by upload backends and
its implementation on top of Google Cloud Storage, together with the URL
and credential helpers it relies on.
"""

from .cloud_storage import (
    CloudStorage,
    ConfigError,
    ErrorCode,
    FileObject,
    StorageAcl,
    StorageConfig,
    StorageError,
    UploadFile,
)
from .credentials import CREDENTIALS_ENV_VAR, resolve_credentials
from .gcloud_storage import GcloudStorage
from .url_codec import GCLOUD_STORAGE_HOST, GCLOUD_STORAGE_URL, ObjectCoordinate

__all__ = [
    # Abstract interfaces and base classes
    "CloudStorage",
    "StorageConfig",
    "FileObject",
    # Concrete implementations
    "GcloudStorage",
    # Data models and enums
    "UploadFile",
    "ObjectCoordinate",
    "StorageAcl",
    "ErrorCode",
    # Exceptions
    "StorageError",
    "ConfigError",
    # Helpers and constants
    "resolve_credentials",
    "CREDENTIALS_ENV_VAR",
    "GCLOUD_STORAGE_URL",
    "GCLOUD_STORAGE_HOST",
]
