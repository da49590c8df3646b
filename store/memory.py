"""In-process blob store keyed by content identifier."""

from pathlib import Path
from typing import Dict, List

from common.cid import ContentIdentifier
from common.exceptions import LocalIOError, StoreRejectedError
from common.logging_config import get_logger
from store.backend import BlobBackend

logger = get_logger(__name__)


class InMemoryBlobStore(BlobBackend):
    """
    Holds uploaded contents in a dict.

    Downloads of unknown content answer like a missing object would over
    HTTP, with StoreRejectedError(404).
    """

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.closed = False

    async def upload(self, content_id: ContentIdentifier, path: Path, filename: str) -> None:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise LocalIOError(f"Cannot read {path} for upload: {e}") from e
        self.blobs[str(content_id)] = data
        self.uploads.append(str(content_id))
        logger.debug(f"Stored {len(data)} bytes for {filename} [cid={content_id}]")

    async def download(self, content_id: ContentIdentifier, destination: Path) -> None:
        data = self.blobs.get(str(content_id))
        if data is None:
            raise StoreRejectedError(404, f"No content for {content_id}")
        try:
            Path(destination).write_bytes(data)
        except OSError as e:
            raise LocalIOError(f"Cannot write {destination}: {e}") from e

    async def close(self) -> None:
        self.closed = True
