"""
Google Cloud Storage implementation of the upload storage interface.

The adapter translates save/download/sign/remove calls into calls on the
``google-cloud-storage`` client. Objects are addressed either by their
public ``https://storage.googleapis.com/<bucket>/<key>`` URL or by a
``{bucket, key}`` pair, falling back to the configured bucket.
"""

import asyncio
import shutil
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import google.auth
import structlog
from google.api_core.exceptions import GoogleAPICallError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from . import url_codec
from .cloud_storage import (
    CloudStorage,
    ConfigError,
    ErrorCode,
    FileObject,
    StorageAcl,
    StorageConfig,
    StorageError,
)
from .credentials import resolve_credentials

DEFAULT_SIGNED_URL_EXPIRE = 60

# Predefined ACL names understood by the JSON API.
PREDEFINED_ACLS = {
    StorageAcl.PUBLIC_READ.value: "publicRead",
}

# Signed URL actions mapped to HTTP methods.
SIGNED_URL_METHODS = {
    "read": "GET",
    "write": "PUT",
    "delete": "DELETE",
    "resumable": "POST",
}

# Upload options copied onto the blob before writing.
BLOB_PROPERTIES = (
    "cache_control",
    "content_disposition",
    "content_encoding",
    "content_language",
    "metadata",
)

TEXT_CONTENT_MARKERS = ("text/", "json", "javascript")


class GcloudStorage(CloudStorage):
    """
    Google Cloud Storage backend.

    Options:
        bucket: The default bucket to use
        credentials: Credentials (service account, authorized user or any
            other type google-auth loads) as a mapping, a JSON string or a
            key file path. Falls back to the location named by
            ``GOOGLE_APPLICATION_CREDENTIALS``.

    A missing bucket or missing credentials leaves the instance without a
    client; operations that need the backend then raise ``StorageError``.
    """

    def __init__(
        self,
        options: Mapping[str, Any] | StorageConfig | None = None,
        name: str | None = None,
        *,
        root_dir: str | Path | None = None,
        logger_name: str = "upload-gcloud",
    ):
        super().__init__(name or "gcloud")
        self._logger = structlog.get_logger(logger_name)
        self._client: storage.Client | None = None
        self._cleanup_tasks: set[asyncio.Task] = set()

        if isinstance(options, StorageConfig):
            options = options.model_dump()
        options = dict(options or {})
        credentials = resolve_credentials(options.get("credentials"), root_dir=root_dir)
        self._config: StorageConfig | None = StorageConfig(
            bucket=options.get("bucket"),
            credentials=credentials,
        )

        if not self._config.credentials:
            self._logger.warning("GCloud Storage: missing credentials", storage=self.name)
            return
        if not self._config.bucket:
            self._logger.warning("GCloud Storage: missing bucket in configuration", storage=self.name)
            return
        self._client = self._create_client(self._config.credentials)

    @staticmethod
    def _create_client(credentials: dict[str, Any]) -> storage.Client:
        """Build the SDK client from any credential type google-auth understands."""
        try:
            auth_credentials, project = google.auth.load_credentials_from_dict(credentials)
        except (GoogleAuthError, ValueError) as e:
            raise ConfigError(
                "Credentials could not be loaded",
                error_code=ErrorCode.CREDENTIALS_PARSE_FAILED.value,
                details={"type": credentials.get("type")},
            ) from e
        return storage.Client(
            project=project or credentials.get("project_id"),
            credentials=auth_credentials,
        )

    @property
    def bucket(self) -> str | None:
        if self._config is None:
            return None
        return self._config.bucket

    @property
    def client(self) -> storage.Client | None:
        """The underlying SDK client, None when not configured."""
        return self._client

    async def save(self, file_obj: FileObject) -> None:
        """Store the given file in the configured bucket."""
        client = self._require_client()
        key = file_obj.get_key()
        coordinate = url_codec.ObjectCoordinate(bucket=self._config.bucket, key=key)
        blob = client.bucket(coordinate.bucket).blob(url_codec.blob_name(key))
        upload_args = self._build_upload_args(blob, file_obj)
        payload = file_obj.get_stream()

        try:
            if isinstance(payload, (str, bytes)):
                await self._run_sync(blob.upload_from_string, payload, **upload_args)
            else:
                await self._run_sync(self._pipe_to_blob, payload, blob, upload_args)
        except Exception as e:
            self._logger.warning("Failed to finalize upload of file", key=key, error=str(e))
            raise StorageError(
                "Could not finalize the file upload",
                error_code=ErrorCode.UPLOAD_FAILED.value,
                status_code=getattr(e, "code", None),
            ) from e

        final_url = url_codec.encode(coordinate)
        if not file_obj.error:
            file_obj.url = final_url
            return

        # The uploader rejected the file while it was transferring.
        self._logger.debug("Removing failed uploaded file", url=final_url)
        task = asyncio.create_task(self._discard(final_url))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def download(self, target: Any, raw: bool = False) -> Any:
        """
        Download a file by URL or key.

        Textual content types (text, JSON, JavaScript) are returned as
        ``str``; everything else as ``bytes``. With ``raw`` the readable
        blob stream is returned and the caller owns it.
        """
        if isinstance(getattr(target, "url", None), str):
            target = target.url
        if isinstance(target, Mapping) and isinstance(target.get("url"), str):
            target = target["url"]
        if not isinstance(target, str) or not target:
            raise StorageError(
                "Download URL is not valid",
                error_code=ErrorCode.INVALID_DOWNLOAD_TARGET.value,
            )

        coordinate = url_codec.decode(target)
        if coordinate is None or not coordinate.key:
            raise StorageError(
                "Download URL is not valid",
                error_code=ErrorCode.INVALID_DOWNLOAD_TARGET.value,
            )
        coordinate = coordinate.with_default_bucket(self.bucket)
        client = self._require_client()
        blob = client.bucket(coordinate.bucket).blob(url_codec.blob_name(coordinate.key))

        if raw:
            return await self._run_sync(blob.open, "rb")

        try:
            data = await self._run_sync(blob.download_as_bytes)
        except Exception as e:
            status_code = getattr(e, "code", None)
            if status_code != 404:
                self._logger.warning("Failed to download file", key=coordinate.key, error=str(e))
            raise StorageError(
                "Could not download file",
                error_code=ErrorCode.DOWNLOAD_FAILED.value,
                status_code=status_code,
            ) from e

        if self._is_text_content(blob.content_type):
            return data.decode("utf-8", errors="replace")
        return data

    async def get_signed_url(
        self,
        target: Any,
        expire: int | None = None,
        action: str | None = None,
    ) -> str | None:
        """
        Generate a signed URL for an object.

        ``target`` is a full object URL or a ``{bucket, key}`` mapping that
        may also carry ``expire`` (seconds, default 60) and ``action``
        (default ``read``). Signing failures resolve with None.
        """
        if isinstance(target, Mapping):
            if expire is None:
                expire = target.get("expire")
            if action is None:
                action = target.get("action")
        coordinate = url_codec.decode(target)
        if coordinate is None or not coordinate.key:
            return None
        coordinate = coordinate.with_default_bucket(self.bucket)

        client = self._require_client()
        blob = client.bucket(coordinate.bucket).blob(url_codec.blob_name(coordinate.key))
        try:
            expire = int(expire or DEFAULT_SIGNED_URL_EXPIRE)
            action = str(action or "read")
            method = SIGNED_URL_METHODS.get(action, action.upper())
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=expire)
            return await self._run_sync(
                blob.generate_signed_url,
                expiration=expires_at,
                method=method,
                version="v4",
            )
        except Exception as e:
            self._logger.debug(
                "Could not generate signed URL",
                bucket=coordinate.bucket,
                key=coordinate.key,
                error=str(e),
            )
            return None

    def can_remove(self, url: Any) -> bool:
        coordinate = url_codec.decode(url)
        return bool(coordinate and coordinate.bucket)

    async def remove(self, target: Any) -> bool | None:
        """
        Remove an object by URL or ``{bucket, key}`` mapping.

        Returns False when the object does not exist. Backend errors other
        than not-found are re-raised.
        """
        coordinate = url_codec.decode(target)
        if coordinate is None or not coordinate.key:
            return None
        coordinate = coordinate.with_default_bucket(self.bucket)
        client = self._require_client()
        blob = client.bucket(coordinate.bucket).blob(url_codec.blob_name(coordinate.key))

        try:
            await self._run_sync(blob.delete)
        except NotFound:
            self._logger.debug("File not found for delete", key=coordinate.key)
            return False
        except GoogleAPICallError:
            self._logger.debug("Failed to remove storage key", key=coordinate.key)
            raise
        return True

    def destroy(self) -> None:
        """Release the client. Pending cleanup removals are cancelled."""
        for task in list(self._cleanup_tasks):
            task.cancel()
        if self._client is not None:
            self._client.close()
        self._client = None
        self._config = None

    # Private helper methods

    async def _run_sync(self, func, *args, **kwargs):
        """Run a blocking SDK call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    def _require_client(self) -> storage.Client:
        if self._client is None:
            raise StorageError(
                f"Storage {self.name} is not configured",
                error_code=ErrorCode.STORAGE_NOT_READY.value,
            )
        return self._client

    def _build_upload_args(self, blob: storage.Blob, file_obj: FileObject) -> dict[str, Any]:
        options = dict(file_obj.options or {})
        acl = options.pop("ACL", None)
        lower_acl = options.pop("acl", None)
        acl = acl or lower_acl or StorageAcl.PRIVATE.value
        if isinstance(acl, StorageAcl):
            acl = acl.value

        for prop in BLOB_PROPERTIES:
            if prop in options:
                setattr(blob, prop, options.pop(prop))
        if options:
            self._logger.debug("Ignoring unsupported upload options", options=sorted(options))

        return {
            "content_type": file_obj.mime_type,
            "predefined_acl": PREDEFINED_ACLS.get(acl, acl),
        }

    @staticmethod
    def _pipe_to_blob(stream: Any, blob: storage.Blob, upload_args: dict[str, Any]) -> None:
        with blob.open("wb", **upload_args) as writer:
            shutil.copyfileobj(stream, writer)

    @staticmethod
    def _is_text_content(content_type: str | None) -> bool:
        if not content_type:
            return False
        return any(marker in content_type for marker in TEXT_CONTENT_MARKERS)

    async def _discard(self, url: str) -> None:
        try:
            await self.remove(url)
        except Exception as e:
            self._logger.error("Failed to remove failed uploaded file", url=url, error=str(e))
