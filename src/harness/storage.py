"""Cloud Storage access used to stage fixture audio for the recognize tool."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Literal, Optional, Protocol

from src.harness.config import HarnessConfigError

logger = logging.getLogger(__name__)


# Error classification for storage operations
StorageErrorKind = Literal["not_found", "conflict", "auth", "quota", "server", "unknown"]


def classify_storage_error(exception: Exception) -> StorageErrorKind:
    """
    Classify an exception raised by a storage backend.

    Args:
        exception: The exception to classify.

    Returns:
        The classified error kind.
    """
    error_str = str(exception).lower()
    error_type = type(exception).__name__.lower()

    if "notfound" in error_type or "404" in error_str or "not found" in error_str:
        return "not_found"

    # Bucket names are global; 409 means someone else owns it
    if "conflict" in error_type or "409" in error_str or "already exists" in error_str:
        return "conflict"

    if any(word in error_str for word in ["401", "403", "forbidden", "unauthorized", "credentials", "permission"]):
        return "auth"

    if any(word in error_str for word in ["429", "quota", "rate limit", "too many requests"]):
        return "quota"

    if any(word in error_str for word in ["500", "502", "503", "504", "internal", "unavailable"]):
        return "server"

    return "unknown"


class StorageBackend(Protocol):
    """Interface implemented by storage backends."""

    def create_bucket(self, name: str) -> None:
        ...

    def upload(self, bucket: str, path: Path) -> str:
        ...

    def list_objects(self, bucket: str) -> List[str]:
        ...

    def delete_objects(self, bucket: str, force: bool = True) -> int:
        ...

    def delete_bucket(self, bucket: str) -> None:
        ...


class GcsStorageBackend:
    """Google Cloud Storage backend.

    Based on the official client library documentation:
    https://cloud.google.com/python/docs/reference/storage/latest

    Note: Requires GOOGLE_APPLICATION_CREDENTIALS env var pointing to
    a service account JSON file (or another ADC source).
    """

    def __init__(self, project: Optional[str] = None) -> None:
        self.project = project
        self._client = None

    def _get_client(self):
        """Lazy-load the Storage client."""
        if self._client is None:
            try:
                from google.cloud import storage
            except ImportError as exc:
                raise HarnessConfigError(
                    "google-cloud-storage package not installed. "
                    "Run: pip install google-cloud-storage"
                ) from exc
            self._client = storage.Client(project=self.project)
        return self._client

    def create_bucket(self, name: str) -> None:
        client = self._get_client()
        client.create_bucket(name)
        logger.info(f"Storage: created bucket '{name}'")

    def upload(self, bucket: str, path: Path) -> str:
        """Upload a local file under its base filename and return the object name."""
        path = Path(path)
        blob = self._get_client().bucket(bucket).blob(path.name)
        blob.upload_from_filename(str(path))
        logger.info(f"Storage: uploaded '{path.name}' to gs://{bucket}")
        return path.name

    def list_objects(self, bucket: str) -> List[str]:
        return [blob.name for blob in self._get_client().list_blobs(bucket)]

    def delete_objects(self, bucket: str, force: bool = True) -> int:
        """Delete every object in the bucket.

        With force=True a failure on one object does not stop the others;
        the first failure is re-raised once the listing has been exhausted.
        Objects that vanished between listing and deletion are ignored.
        """
        from google.api_core import exceptions as gexc

        client = self._get_client()
        deleted = 0
        first_error: Optional[Exception] = None
        for blob in client.list_blobs(bucket):
            try:
                blob.delete()
                deleted += 1
            except gexc.NotFound:
                logger.warning(f"Storage: object '{blob.name}' already gone from gs://{bucket}")
            except gexc.GoogleAPICallError as exc:
                if not force:
                    raise
                logger.warning(f"Storage: failed to delete '{blob.name}' from gs://{bucket}: {exc}")
                first_error = first_error or exc
        if first_error is not None:
            raise first_error
        logger.info(f"Storage: deleted {deleted} object(s) from gs://{bucket}")
        return deleted

    def delete_bucket(self, bucket: str) -> None:
        self._get_client().bucket(bucket).delete()
        logger.info(f"Storage: deleted bucket '{bucket}'")
