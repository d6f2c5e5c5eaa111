"""Base interface for object storage backends."""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Abstract base class for key -> blob storage backends (local, GCS, etc.)."""

    @abstractmethod
    async def upload(self, key: str, data: bytes) -> None:
        """
        Store ``data`` under ``key``, replacing any existing blob.

        Args:
            key: Opaque storage key
            data: File content as bytes
        """
        pass

    @abstractmethod
    async def retrieve(self, key: str) -> bytes:
        """
        Retrieve blob content.

        Raises:
            FileNotFoundError: If no blob is stored under ``key``
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Delete the blob stored under ``key``. Missing blobs are ignored.
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass
