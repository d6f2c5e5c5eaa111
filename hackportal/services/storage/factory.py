"""Factory for creating storage backends."""

import logging

from hackportal.config import Settings
from hackportal.services.storage.base import StorageBackend
from hackportal.services.storage.gcs_backend import GCSStorageBackend
from hackportal.services.storage.local_backend import LocalStorageBackend

logger = logging.getLogger(__name__)


def get_storage_backend(settings: Settings) -> StorageBackend:
    """
    Create the storage backend selected by ``settings.storage_backend``.

    Raises:
        ValueError: If the backend type is unsupported or required settings are missing
    """
    backend_type = settings.storage_backend.lower()

    if backend_type == "local":
        logger.info("Using local CV storage", extra={"storage_path": settings.storage_path})
        return LocalStorageBackend(settings.storage_path)

    elif backend_type == "gcs":
        if not settings.gcs_bucket_name:
            raise ValueError("GCS bucket_name is required for GCS storage backend")

        logger.info("Using GCS CV storage", extra={"bucket": settings.gcs_bucket_name})
        return GCSStorageBackend(
            bucket_name=settings.gcs_bucket_name,
            project_id=settings.gcs_project_id or None,
            credentials_path=settings.gcs_credentials_path or None,
        )

    else:
        raise ValueError(f"Unsupported storage backend: {backend_type}. Supported backends: local, gcs")
