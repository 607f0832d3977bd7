"""
Abstract file storage interface for the upload backends.

This module defines the abstract base class, data model and exception
hierarchy shared by storage implementations, so that an uploader can
save, download, sign and remove files regardless of the provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, field_validator


class ErrorCode(str, Enum):
    """Error codes attached to storage exceptions."""

    CREDENTIALS_PARSE_FAILED = "CredentialsParseFailed"
    CREDENTIALS_READ_FAILED = "CredentialsReadFailed"
    UPLOAD_FAILED = "UploadFailed"
    DOWNLOAD_FAILED = "DownloadFailed"
    INVALID_DOWNLOAD_TARGET = "InvalidDownloadTarget"
    STORAGE_NOT_READY = "StorageNotReady"


class StorageAcl(str, Enum):
    """Access levels callers may request on upload."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"


class FileObject(Protocol):
    """
    A file handed to a storage backend by the uploader.

    The backend writes ``url`` back after a successful upload. ``error``
    may be set by the uploader while the transfer is in flight.
    """

    mime_type: str | None
    options: dict[str, Any]
    url: str | None
    error: Any

    def get_key(self) -> str:
        ...

    def get_stream(self) -> Any:
        ...


@dataclass
class UploadFile:
    """Concrete file object carrying a key, a payload and upload options."""

    key: str
    payload: Any
    mime_type: str | None = None
    options: dict[str, Any] = field(default_factory=dict)
    url: str | None = None
    error: Any = None

    def get_key(self) -> str:
        return self.key

    def get_stream(self) -> Any:
        """Return the payload: a ``str``/``bytes`` buffer or a readable stream."""
        return self.payload


class StorageConfig(BaseModel):
    """Resolved configuration of a storage instance."""

    model_config = ConfigDict(frozen=True)

    bucket: str | None = None
    credentials: dict[str, Any] | None = None

    @field_validator("bucket", mode="before")
    @classmethod
    def empty_bucket_is_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v or None

    @field_validator("credentials", mode="before")
    @classmethod
    def empty_credentials_is_none(cls, v):
        return v or None


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigError(StorageError):
    """Storage configuration is invalid."""

    pass


class CloudStorage(ABC):
    """
    Abstract base class for storage implementations.

    Every backend is constructed with a name and exposes the same
    save/download/sign/remove surface to the uploader.
    """

    def __init__(self, name: str):
        self.name = name

    @property
    @abstractmethod
    def bucket(self) -> str | None:
        """The configured default bucket."""
        pass

    @abstractmethod
    async def save(self, file_obj: FileObject) -> None:
        """
        Store the given file.

        Args:
            file_obj: File to upload. Its ``url`` is set on success.
        """
        pass

    @abstractmethod
    async def download(self, target: Any, raw: bool = False) -> Any:
        """
        Download a stored file.

        Args:
            target: Object URL, key, or an object exposing a ``url`` string
            raw: Return the readable stream instead of buffered content

        Returns:
            ``str`` for textual content, ``bytes`` otherwise, or the
            stream when ``raw`` is set
        """
        pass

    @abstractmethod
    async def get_signed_url(
        self,
        target: Any,
        expire: int | None = None,
        action: str | None = None,
    ) -> str | None:
        """
        Generate a time limited URL for a stored file.

        Args:
            target: Object URL or a ``{bucket, key}`` mapping
            expire: Validity in seconds
            action: Operation the URL grants

        Returns:
            The signed URL, or None when it cannot be generated
        """
        pass

    @abstractmethod
    async def remove(self, target: Any) -> bool | None:
        """
        Remove a stored file.

        Args:
            target: Object URL or a ``{bucket, key}`` mapping

        Returns:
            True when removed, False when already absent, None when the
            target names no key
        """
        pass

    @abstractmethod
    def can_remove(self, url: Any) -> bool:
        """Check whether the given URL belongs to this backend."""
        pass

    @abstractmethod
    def destroy(self) -> None:
        """Release configuration and client references."""
        pass


__all__ = [
    "CloudStorage",
    "ConfigError",
    "ErrorCode",
    "FileObject",
    "StorageAcl",
    "StorageConfig",
    "StorageError",
    "UploadFile",
]
