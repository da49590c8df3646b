"""Blob store backend for an Estuary-style IPFS pinning service."""

import os
from pathlib import Path
from typing import Optional

import httpx

from common.cid import ContentIdentifier
from common.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_STORE_HOST, STREAM_CHUNK_SIZE_BYTES
from common.exceptions import LocalIOError, StoreRejectedError, StoreUnavailableError
from common.logging_config import get_logger
from store.backend import BlobBackend

logger = get_logger(__name__)


class EstuaryBlobStore(BlobBackend):
    """HTTP client for the Estuary content API."""

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_STORE_HOST,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the Estuary client.

        Args:
            api_key: Estuary API key sent as a bearer token
            host: Base URL of the Estuary API
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used to mock the service)
        """
        self.host = host.rstrip('/')
        self.session = httpx.AsyncClient(
            base_url=self.host,
            timeout=timeout,
            headers={'Authorization': f'Bearer {api_key}'},
            transport=transport
        )
        logger.info(f"Initialized EstuaryBlobStore [host={self.host}]")

    async def upload(self, content_id: ContentIdentifier, path: Path, filename: str) -> None:
        """
        Stage a file on Estuary via POST /content/add.

        Raises:
            LocalIOError: If the file cannot be read
            StoreRejectedError: If Estuary answers with a non-success status
            StoreUnavailableError: If Estuary cannot be reached
        """
        logger.info(f"Uploading {path} to store [cid={content_id}]")
        try:
            with open(path, 'rb') as f:
                files = {'data': (filename, f, 'application/octet-stream')}
                response = await self._request('POST', '/content/add', files=files)
        except OSError as e:
            raise LocalIOError(f"Cannot read {path} for upload: {e}") from e

        self._check_status(response, f"upload of {path}")
        logger.debug(f"Store accepted {filename}: {response.text[:200]}")

    async def download(self, content_id: ContentIdentifier, destination: Path) -> None:
        """
        Stream GET /get/{cid} into destination.

        The body is written to a sibling '.part' file that replaces
        destination only once the transfer completes.

        Raises:
            LocalIOError: If destination cannot be written
            StoreRejectedError: If Estuary answers with a non-success status
            StoreUnavailableError: If Estuary cannot be reached
        """
        logger.info(f"Downloading {content_id} to {destination}")
        partial = destination.with_name(destination.name + '.part')
        try:
            async with self.session.stream('GET', f'/get/{content_id}') as response:
                if not response.is_success:
                    await response.aread()
                    self._check_status(response, f"download of {content_id}")

                with open(partial, 'wb') as f:
                    async for chunk in response.aiter_bytes(STREAM_CHUNK_SIZE_BYTES):
                        f.write(chunk)
            os.replace(partial, destination)
        except httpx.TransportError as e:
            _discard(partial)
            logger.error(f"Store unreachable during download of {content_id}: {e}")
            raise StoreUnavailableError(f"Cannot reach blob store at {self.host}: {e}") from e
        except OSError as e:
            _discard(partial)
            raise LocalIOError(f"Cannot write {destination}: {e}") from e

    async def close(self) -> None:
        await self.session.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        logger.debug(f"Making request: {method} {endpoint}")
        try:
            response = await self.session.request(method, endpoint, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"Store unreachable: {method} {endpoint} error={type(e).__name__}")
            raise StoreUnavailableError(f"Cannot reach blob store at {self.host}: {e}") from e
        logger.debug(f"Response received: {method} {endpoint} status={response.status_code}")
        return response

    @staticmethod
    def _check_status(response: httpx.Response, description: str) -> None:
        if response.is_success:
            return
        detail = response.text[:200] if response.text else None
        logger.warning(f"Store rejected {description}: status={response.status_code}")
        raise StoreRejectedError(response.status_code, detail)


def _discard(path: Path) -> None:
    path.unlink(missing_ok=True)
