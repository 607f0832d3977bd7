"""
Factory for creating storage instances.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from upload_gcloud.storage.gcloud_storage import GcloudStorage
from upload_gcloud.utils.env_config import AppSettings

DEFAULT_STORAGE_NAME = "gcloud"


def get_storage_class() -> type[GcloudStorage]:
    """Return the storage class registered for ``gcloud``."""
    return GcloudStorage


def create(
    name: str | None = None,
    options: Mapping[str, Any] | None = None,
    *,
    root_dir: str | Path | None = None,
) -> GcloudStorage:
    """Manually create a storage instance."""
    return GcloudStorage(options, name or DEFAULT_STORAGE_NAME, root_dir=root_dir)


def create_storage(settings: AppSettings) -> GcloudStorage | None:
    """Create storage based on configuration."""
    config_dict = settings.get_storage_config()

    bucket_name = config_dict["bucket"]
    if not bucket_name or not bucket_name.strip():
        return None

    return GcloudStorage(
        {"bucket": bucket_name.strip(), "credentials": config_dict["credentials"]},
        config_dict["name"],
        root_dir=config_dict["root_dir"],
        logger_name=config_dict["logger"],
    )
