"""CrudFs: create, read, update and delete tracked files across ledger, store and manifest."""

import asyncio
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from common.exceptions import (
    AlreadyExistsError,
    ContentMismatchError,
    DecodeError,
    LocalIOError,
    NotTrackedError,
    RecordConflictError,
)
from common.logging_config import get_logger
from common.path_key import derive_key, key_to_hex
from common.types import CrudFile, hash_file
from crudfs.locks import KeyLockArena
from crudfs.manifest import Manifest
from ledger.client import LedgerClient
from store.client import StoreClient

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass
class ReconcileReport:
    """Differences between the manifest and the ledger."""
    missing_locally: List[CrudFile] = field(default_factory=list)
    missing_remotely: List[CrudFile] = field(default_factory=list)
    conflicts: List[Tuple[CrudFile, CrudFile]] = field(default_factory=list)
    applied: bool = False

    @property
    def clean(self) -> bool:
        return not (self.missing_locally or self.missing_remotely or self.conflicts)


def records_differ(local: CrudFile, remote: CrudFile) -> bool:
    """True when the ledger's copy disagrees on content, metadata or timestamp."""
    return (
        local.content_id != remote.content_id
        or local.metadata != remote.metadata
        or local.timestamp != remote.timestamp
    )


class CrudFs:
    """
    Orchestrates every verb in the same order: ledger first, then the blob
    store, then the manifest. A failure at any remote step leaves the
    manifest untouched.

    Each verb holds the lock of its path key for its whole duration;
    manifest mutation and persistence are serialized by one lock.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        store: StoreClient,
        manifest: Manifest,
        manifest_path: PathLike
    ):
        self.ledger = ledger
        self.store = store
        self.manifest = manifest
        self.manifest_path = os.fspath(manifest_path)
        self._key_locks = KeyLockArena()
        self._manifest_lock = asyncio.Lock()

    async def create(self, path: PathLike, metadata: Optional[Mapping[str, str]] = None) -> CrudFile:
        """
        Start tracking a local file.

        Returns:
            The confirmed record now stored in the manifest

        Raises:
            LocalFileNotFoundError: If the file does not exist
            AlreadyExistsError: If the path is already tracked
            LedgerError, StoreError: If a remote step fails (manifest untouched)
            LocalIOError: If the manifest cannot be written
        """
        record = await hash_file(path)
        if metadata:
            record.set_metadata(metadata)

        async with self._key_locks.hold(record.key):
            if self.manifest.contains(record.path):
                raise AlreadyExistsError(f"Already tracking {record.path}")

            confirmed = await self.ledger.create(record.path, record.content_id, record.metadata)
            await self.store.put(confirmed)
            await self._commit(confirmed.key, confirmed)

        logger.info(f"Created {confirmed.path} [key={confirmed.key_hex}, cid={confirmed.content_id}]")
        return confirmed.copy()

    async def read(self, path: PathLike, reconcile: bool = False) -> CrudFile:
        """
        Return the tracked record for path.

        With reconcile=True the ledger copy is fetched and compared; local
        data is never overwritten.

        Raises:
            NotTrackedError: If the path is not tracked
            RecordConflictError: If reconciling and the ledger disagrees
        """
        key = derive_key(path)
        async with self._key_locks.hold(key):
            record = self.manifest.get_by_key(key)
            if record is None:
                raise NotTrackedError(f"Not tracking {os.fspath(path)}")

            if reconcile:
                remote = await self.ledger.read(key)
                if records_differ(record, remote):
                    logger.warning(f"Ledger disagrees with manifest for {record.path}")
                    raise RecordConflictError(
                        f"Ledger record for {record.path} differs from the manifest "
                        f"(local cid={record.content_id}, timestamp={record.timestamp}; "
                        f"ledger cid={remote.content_id}, timestamp={remote.timestamp})",
                        local=record.copy(),
                        remote=remote
                    )

            return record.copy()

    async def update(self, record: CrudFile) -> CrudFile:
        """
        Push new content or metadata for a tracked path.

        The file at record.path is hashed again under the key lock, so the
        ledger always receives the identifier of the bytes that are
        uploaded; record contributes its path and metadata.

        Returns:
            Record for the current file contents carrying the ledger's new timestamp

        Raises:
            DecodeError: If record.key is not the path key of record.path
            NotTrackedError: If the path is not tracked
            RecordNotFoundError: If the ledger no longer holds the record
            LedgerError, StoreError: If a remote step fails (manifest untouched)
        """
        if record.key != derive_key(record.path):
            raise DecodeError(f"Record key {record.key_hex} is not the path key of {record.path}")

        async with self._key_locks.hold(record.key):
            if not self.manifest.contains(record.path):
                raise NotTrackedError(f"Not tracking {record.path}")

            updated = await hash_file(record.path)
            updated.set_metadata(record.metadata)
            if updated.content_id != record.content_id:
                logger.debug(f"{record.path} changed on disk since it was read [cid={updated.content_id}]")

            _, timestamp = await self.ledger.update(updated.key, updated.content_id, updated.metadata)
            updated.set_timestamp(timestamp)

            await self.store.put(updated)
            await self._commit(updated.key, updated)

        logger.info(f"Updated {updated.path} [cid={updated.content_id}, timestamp={updated.timestamp}]")
        return updated.copy()

    async def delete(self, path: PathLike) -> None:
        """
        Stop tracking a path. Stored contents are left in the blob store.

        Raises:
            NotTrackedError: If the path is not tracked
            RecordNotFoundError: If the ledger no longer holds the record
        """
        key = derive_key(path)
        async with self._key_locks.hold(key):
            if self.manifest.get_by_key(key) is None:
                raise NotTrackedError(f"Not tracking {os.fspath(path)}")

            await self.ledger.delete(key)
            await self._commit(key, None)

        logger.info(f"Deleted {os.fspath(path)} [key={key_to_hex(key)}]")

    async def fetch(self, path: PathLike, destination: PathLike) -> CrudFile:
        """
        Download the tracked content of path into destination.

        Content is downloaded next to destination and moved into place only
        once its identifier matches the tracked one.

        Raises:
            NotTrackedError: If the path is not tracked
            ContentMismatchError: If the downloaded bytes do not match the tracked cid
            LocalIOError: If destination cannot be written
        """
        key = derive_key(path)
        target = Path(destination)
        staging = target.with_name(f".{target.name}.fetch")

        async with self._key_locks.hold(key):
            record = self.manifest.get_by_key(key)
            if record is None:
                raise NotTrackedError(f"Not tracking {os.fspath(path)}")

            try:
                fetched = await self.store.get(record.content_id, staging)
                if fetched.content_id != record.content_id:
                    raise ContentMismatchError(
                        f"Downloaded content for {record.path} hashes to {fetched.content_id}, "
                        f"expected {record.content_id}"
                    )
                try:
                    os.replace(staging, target)
                except OSError as e:
                    raise LocalIOError(f"Cannot move downloaded content into {target}: {e}") from e
            finally:
                staging.unlink(missing_ok=True)

        logger.info(f"Fetched {record.path} into {os.fspath(destination)}")
        return replace(fetched, path=os.fspath(destination), filename=target.name, key=derive_key(destination))

    def tracked(self) -> List[CrudFile]:
        """Tracked records ordered by path."""
        return sorted((r.copy() for r in self.manifest), key=lambda r: r.path)

    async def verify(self, apply: bool = False) -> ReconcileReport:
        """
        Compare the manifest with the ledger.

        With apply=True, records found only on the ledger are added to the
        manifest and entries the ledger no longer holds are dropped.
        Conflicting records are only reported.
        """
        remote: Dict[bytes, CrudFile] = await self.ledger.read_all()
        local: Dict[bytes, CrudFile] = {r.key: r for r in self.manifest}

        report = ReconcileReport(
            missing_locally=[remote[k] for k in remote if k not in local],
            missing_remotely=[local[k].copy() for k in local if k not in remote],
            conflicts=[
                (local[k].copy(), remote[k])
                for k in local
                if k in remote and records_differ(local[k], remote[k])
            ],
        )
        logger.info(
            f"Verify: {len(report.missing_locally)} missing locally, "
            f"{len(report.missing_remotely)} missing remotely, {len(report.conflicts)} conflicts"
        )

        if apply and (report.missing_locally or report.missing_remotely):
            async with self._manifest_lock:
                snapshot = dict(self.manifest.files)
                for record in report.missing_locally:
                    self.manifest.add(record.copy())
                for record in report.missing_remotely:
                    self.manifest.remove_key(record.key)
                try:
                    self.manifest.write(self.manifest_path)
                except LocalIOError:
                    self.manifest.files = snapshot
                    raise
            report.applied = True

        return report

    async def close(self) -> None:
        await self.ledger.close()
        await self.store.close()

    async def __aenter__(self) -> "CrudFs":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _commit(self, key: bytes, record: Optional[CrudFile]) -> None:
        """Apply one manifest change and persist it, restoring the entry if the write fails."""
        async with self._manifest_lock:
            previous = self.manifest.get_by_key(key)
            if record is None:
                self.manifest.remove_key(key)
            else:
                self.manifest.add(record.copy())

            try:
                self.manifest.write(self.manifest_path)
            except LocalIOError as e:
                if previous is None:
                    self.manifest.remove_key(key)
                else:
                    self.manifest.add(previous)
                logger.error(
                    f"Manifest write failed after remote commit of {key_to_hex(key)}; "
                    f"run verify to recover: {e}"
                )
                raise
