"""Locks serializing work on one path key and on the manifest file."""

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Union

from common.exceptions import LocalIOError, ManifestLockedError
from common.logging_config import get_logger

logger = get_logger(__name__)


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class KeyLockArena:
    """
    One asyncio.Lock per key, created on first use and dropped once no task
    holds or waits for it.
    """

    def __init__(self):
        self._slots: Dict[bytes, _Slot] = {}

    @asynccontextmanager
    async def hold(self, key: bytes) -> AsyncIterator[None]:
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0:
                del self._slots[key]

    def __len__(self) -> int:
        return len(self._slots)


class ManifestFileLock:
    """
    Cross-process exclusion on a manifest, held as '<manifest>.lock'.

    The lock file is created with O_CREAT | O_EXCL and holds the owner's
    pid. A stale lock left by a crashed process has to be removed by hand.
    """

    def __init__(self, manifest_path: Union[str, os.PathLike]):
        self.path = Path(f"{os.fspath(manifest_path)}.lock")
        self._held = False

    def acquire(self) -> None:
        """
        Raises:
            ManifestLockedError: If another process holds the lock
            LocalIOError: If the lock file cannot be created
        """
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            raise ManifestLockedError(
                f"Manifest is locked by another process ({self.path} exists)"
            ) from e
        except OSError as e:
            raise LocalIOError(f"Cannot create lock file {self.path}: {e}") from e

        with os.fdopen(fd, 'w') as f:
            f.write(str(os.getpid()))
        self._held = True
        logger.debug(f"Acquired manifest lock {self.path}")

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        self.path.unlink(missing_ok=True)
        logger.debug(f"Released manifest lock {self.path}")

    def __enter__(self) -> "ManifestFileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
