"""In-process ledger with blocks, receipts and events."""

import asyncio
import hashlib
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from common.exceptions import LedgerRejectedError, RecordNotFoundError
from common.logging_config import get_logger
from common.path_key import derive_key, key_to_hex
from ledger.backend import LedgerBackend, LedgerEvent, TxReceipt

logger = get_logger(__name__)


@dataclass
class _StoredFile:
    path: str
    cid: str
    timestamp: int
    metadata: str


class InMemoryLedger(LedgerBackend):
    """
    Deterministic stand-in for the CrudFs contract.

    Each submitted transaction is mined into its own block immediately and
    enforces the same rules as the contract (unique keys, non-empty cid,
    existing key for update and delete). Timestamps never decrease.

    Knobs:
        confirmation_delay: seconds wait_for_receipt sleeps before answering
        emit_events: when False, mined transactions emit no events
    """

    def __init__(self, confirmation_delay: float = 0.0, emit_events: bool = True, clock=None):
        self.confirmation_delay = confirmation_delay
        self.emit_events = emit_events
        self._clock = clock or (lambda: int(time.time()))
        self._files: Dict[bytes, _StoredFile] = {}
        self._receipts: Dict[str, TxReceipt] = {}
        self._events: List[LedgerEvent] = []
        self._block_number = 0
        self._last_timestamp = 0
        self._tx_counter = 0
        self.submissions: List[Tuple[str, str]] = []
        self.closed = False

    async def submit_create(self, path: str, cid: str, metadata: str) -> str:
        key = derive_key(path)
        if not cid:
            raise LedgerRejectedError("CID cannot be empty")
        if key in self._files:
            raise LedgerRejectedError(f"File already exists: {path}")

        tx_hash, block, timestamp = self._mine("CreateFile", key)
        self._files[key] = _StoredFile(path, cid, timestamp, metadata)
        return tx_hash

    async def submit_update(self, key: bytes, cid: str, metadata: str) -> str:
        stored = self._require(key)
        if not cid:
            raise LedgerRejectedError("CID cannot be empty")

        tx_hash, block, timestamp = self._mine("UpdateFile", key)
        stored.cid = cid
        stored.metadata = metadata
        stored.timestamp = timestamp
        return tx_hash

    async def submit_delete(self, key: bytes) -> str:
        self._require(key)
        tx_hash, block, timestamp = self._mine("DeleteFile", key)
        del self._files[key]
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        if self.confirmation_delay:
            await asyncio.sleep(self.confirmation_delay)
        return self._receipts[tx_hash]

    async def get_events(self, name: str, from_block: int, to_block: int) -> List[LedgerEvent]:
        return [
            e for e in self._events
            if e.name == name and from_block <= e.block_number <= to_block
        ]

    async def read_file(self, key: bytes) -> Tuple:
        stored = self._require(key)
        return stored.path, stored.cid, stored.timestamp, stored.metadata

    async def read_all_keys(self) -> Sequence[bytes]:
        return list(self._files)

    async def close(self) -> None:
        self.closed = True

    def inject_event(self, event: LedgerEvent) -> None:
        """Append an arbitrary event, for exercising confirmation checks."""
        self._events.append(event)

    def put_raw(self, path: str, cid: str, timestamp: int, metadata: str) -> bytes:
        """Store a record directly, bypassing transactions."""
        key = derive_key(path)
        self._files[key] = _StoredFile(path, cid, timestamp, metadata)
        return key

    @property
    def block_number(self) -> int:
        return self._block_number

    def _require(self, key: bytes) -> _StoredFile:
        stored = self._files.get(key)
        if stored is None:
            raise RecordNotFoundError(f"File does not exist: {key_to_hex(key)}")
        return stored

    def _mine(self, event_name: str, key: bytes) -> Tuple[str, int, int]:
        self._tx_counter += 1
        self._block_number += 1
        self._last_timestamp = max(self._last_timestamp + 1, self._clock())

        tx_hash = "0x" + hashlib.sha256(f"tx-{self._tx_counter}".encode()).hexdigest()
        self._receipts[tx_hash] = TxReceipt(tx_hash, self._block_number, True)
        self.submissions.append((event_name, tx_hash))
        if self.emit_events:
            self._events.append(LedgerEvent(event_name, key, self._last_timestamp, tx_hash, self._block_number))

        logger.debug(f"Mined {event_name} [key={key_to_hex(key)}, block={self._block_number}]")
        return tx_hash, self._block_number, self._last_timestamp
