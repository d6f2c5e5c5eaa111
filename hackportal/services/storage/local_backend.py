"""Local filesystem storage backend implementation."""

import os
from pathlib import Path

import aiofiles

from hackportal.services.storage.base import StorageBackend


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, base_path: str | Path):
        """
        Initialize local storage backend.

        Args:
            base_path: Base directory path for storage
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, key: str) -> Path:
        """
        Resolve a storage key to a path under base_path.

        Raises:
            ValueError: If the key is empty, absolute or escapes base_path
        """
        if not key:
            raise ValueError("Storage key must not be empty")
        path = Path(key)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError(f"Invalid storage key: {key}")
        return self.base_path / path

    async def upload(self, key: str, data: bytes) -> None:
        file_path = self._resolve_path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)

    async def retrieve(self, key: str) -> bytes:
        """
        Retrieve file content from local filesystem.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        full_path = self._resolve_path(key)
        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    async def delete(self, key: str) -> None:
        full_path = self._resolve_path(key)
        if await self.exists(key):
            os.remove(full_path)

    async def exists(self, key: str) -> bool:
        return self._resolve_path(key).exists()
