"""Google Cloud Storage backend implementation."""

import asyncio
from pathlib import Path

try:
    from google.cloud import storage
    from google.cloud.exceptions import NotFound
except ImportError:
    storage = None
    NotFound = Exception

from hackportal.services.storage.base import StorageBackend


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend."""

    def __init__(self, bucket_name: str, project_id: str | None = None, credentials_path: str | None = None):
        """
        Initialize GCS storage backend.

        Args:
            bucket_name: GCS bucket name
            project_id: GCP project ID (optional, uses default if not provided)
            credentials_path: Path to service account JSON file (optional, uses ADC if not provided)
        """
        if storage is None:
            raise ImportError("google-cloud-storage is not installed. Install it with: pip install hackportal[gcs]")

        self.bucket_name = bucket_name

        if credentials_path:
            self.client = storage.Client.from_service_account_json(credentials_path, project=project_id)
        else:
            # Use Application Default Credentials (ADC)
            self.client = storage.Client(project=project_id)

        self.bucket = self.client.bucket(bucket_name)

    def _normalize_key(self, key: str) -> str:
        """Normalize a key for GCS (forward slashes, no leading slash)."""
        return str(Path(key)).replace("\\", "/").lstrip("/")

    async def upload(self, key: str, data: bytes) -> None:
        blob = self.bucket.blob(self._normalize_key(key))
        await asyncio.to_thread(blob.upload_from_string, data, content_type=self._guess_content_type(key))

    async def retrieve(self, key: str) -> bytes:
        """
        Retrieve blob content from GCS.

        Raises:
            FileNotFoundError: If the blob doesn't exist
        """
        blob_path = self._normalize_key(key)
        blob = self.bucket.blob(blob_path)

        try:
            return await asyncio.to_thread(blob.download_as_bytes)
        except NotFound:
            raise FileNotFoundError(f"File not found in GCS: {blob_path}")

    async def delete(self, key: str) -> None:
        blob = self.bucket.blob(self._normalize_key(key))

        try:
            await asyncio.to_thread(blob.delete)
        except NotFound:
            # File doesn't exist, ignore
            pass

    async def exists(self, key: str) -> bool:
        blob = self.bucket.blob(self._normalize_key(key))
        return await asyncio.to_thread(blob.exists)

    def _guess_content_type(self, key: str) -> str:
        ext = Path(key).suffix.lower()
        content_types = {
            ".pdf": "application/pdf",
            ".doc": "application/msword",
            ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            ".txt": "text/plain",
            ".odt": "application/vnd.oasis.opendocument.text",
        }
        return content_types.get(ext, "application/octet-stream")
