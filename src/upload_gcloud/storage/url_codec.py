"""
Conversion between public object URLs and (bucket, key) coordinates.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import urlsplit

GCLOUD_STORAGE_URL = "https://storage.googleapis.com/"
GCLOUD_STORAGE_HOST = "storage.googleapis.com"


@dataclass(frozen=True)
class ObjectCoordinate:
    """Location of an object: bucket name and key."""

    bucket: str | None = None
    key: str | None = None

    def with_default_bucket(self, bucket: str | None) -> "ObjectCoordinate":
        if self.bucket:
            return self
        return replace(self, bucket=bucket)


def blob_name(key: str) -> str:
    """Return the backend object name for a key."""
    return key.lstrip("/")


def decode(target: Any) -> ObjectCoordinate | None:
    """
    Resolve a URL, a plain key or a coordinate mapping.

    Full URLs must point at the public storage host, otherwise None is
    returned. Plain strings are taken as the key with no bucket.
    """
    if isinstance(target, ObjectCoordinate):
        return target
    if isinstance(target, Mapping):
        return ObjectCoordinate(bucket=target.get("bucket") or None, key=target.get("key") or None)
    if not target:
        return ObjectCoordinate()
    if not isinstance(target, str):
        return None
    if "://" not in target:
        return ObjectCoordinate(key=target)

    try:
        parts = urlsplit(target)
        hostname = parts.hostname
    except ValueError:
        return None
    if hostname != GCLOUD_STORAGE_HOST:
        return None

    segments = parts.path.split("/")
    if segments and segments[0] == "":
        segments = segments[1:]
    if not segments or not segments[0]:
        return None
    bucket, rest = segments[0], segments[1:]
    key = "/" + "/".join(rest) if any(rest) else None
    return ObjectCoordinate(bucket=bucket, key=key)


def encode(coordinate: ObjectCoordinate) -> str:
    """Build the public URL of an object."""
    return GCLOUD_STORAGE_URL + coordinate.bucket + "/" + blob_name(coordinate.key)
