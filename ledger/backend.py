"""Ledger backend interface and the value types it exchanges."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class TxReceipt:
    """Outcome of a mined transaction."""
    tx_hash: str
    block_number: int
    succeeded: bool


@dataclass(frozen=True)
class LedgerEvent:
    """A CreateFile, UpdateFile or DeleteFile event emitted by the ledger."""
    name: str
    key: bytes
    timestamp: int
    tx_hash: str
    block_number: int


class LedgerBackend(ABC):
    """
    Transport to the authoritative ledger.

    Submissions return as soon as the transaction is accepted for
    inclusion; confirmation is a separate step so that callers can bound
    it with a timeout.
    """

    @abstractmethod
    async def submit_create(self, path: str, cid: str, metadata: str) -> str:
        """Submit a createFile transaction and return its hash."""

    @abstractmethod
    async def submit_update(self, key: bytes, cid: str, metadata: str) -> str:
        """Submit an updateFile transaction and return its hash."""

    @abstractmethod
    async def submit_delete(self, key: bytes) -> str:
        """Submit a deleteFile transaction and return its hash."""

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Wait, without bound, until the transaction is mined."""

    @abstractmethod
    async def get_events(self, name: str, from_block: int, to_block: int) -> List[LedgerEvent]:
        """Return events with the given name emitted in the block range (inclusive)."""

    @abstractmethod
    async def read_file(self, key: bytes) -> Tuple:
        """Return the raw (path, cid, timestamp, metadata) tuple stored under key."""

    @abstractmethod
    async def read_all_keys(self) -> Sequence[bytes]:
        """Return every key the ledger currently holds."""

    async def close(self) -> None:
        """Release transport resources."""
