"""
Google Cloud Storage backend for file uploads.
"""

from .factories.storage_factory import create, create_storage, get_storage_class
from .storage import GcloudStorage
from .utils.logging_config import configure_logging

__version__ = "0.1.0"

__all__ = [
    "GcloudStorage",
    "configure_logging",
    "create",
    "create_storage",
    "get_storage_class",
]
