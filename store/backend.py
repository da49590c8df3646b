"""Blob store backend interface."""

from abc import ABC, abstractmethod
from pathlib import Path

from common.cid import ContentIdentifier


class BlobBackend(ABC):
    """Remote storage of file contents addressed by content identifier."""

    @abstractmethod
    async def upload(self, content_id: ContentIdentifier, path: Path, filename: str) -> None:
        """Upload the bytes at path, which hash to content_id."""

    @abstractmethod
    async def download(self, content_id: ContentIdentifier, destination: Path) -> None:
        """Write the bytes stored under content_id to destination."""

    async def close(self) -> None:
        """Release transport resources."""
