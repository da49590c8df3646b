"""Store client: push record contents to and pull them from the blob store."""

import os
from pathlib import Path
from typing import Union

from common.cid import ContentIdentifier
from common.exceptions import LocalFileNotFoundError, LocalIOError
from common.logging_config import get_logger
from common.types import CrudFile, hash_file
from store.backend import BlobBackend

logger = get_logger(__name__)


class StoreClient:
    """Moves file contents between the local filesystem and a blob backend."""

    def __init__(self, backend: BlobBackend):
        self.backend = backend

    async def put(self, record: CrudFile) -> None:
        """
        Upload the bytes at record.path.

        Raises:
            LocalFileNotFoundError: If the file no longer exists
            StoreRejectedError: If the store refuses the upload
            StoreUnavailableError: If the store cannot be reached
        """
        path = Path(record.path)
        if not path.is_file():
            raise LocalFileNotFoundError(f"File not found: {record.path}")
        await self.backend.upload(record.content_id, path, record.filename)
        logger.info(f"Stored content of {record.path} [cid={record.content_id}]")

    async def get(
        self,
        content_id: ContentIdentifier,
        destination: Union[str, os.PathLike]
    ) -> CrudFile:
        """
        Download content into destination, replacing any existing file.

        Returns:
            Unconfirmed record describing the downloaded file

        Raises:
            LocalIOError: If destination or its parents cannot be created
            StoreRejectedError: If the store has no such content
            StoreUnavailableError: If the store cannot be reached
        """
        target = Path(destination)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIOError(f"Cannot create directory {target.parent}: {e}") from e

        await self.backend.download(content_id, target)
        logger.info(f"Fetched {content_id} into {destination}")
        return await hash_file(destination)

    async def close(self) -> None:
        await self.backend.close()
