"""Ledger client: submit, confirm and read CrudFs records on the ledger."""

import asyncio
from typing import Dict, List, Mapping, Optional, Tuple

from common.cid import ContentIdentifier
from common.constants import DEFAULT_CONFIRMATION_TIMEOUT_SECONDS
from common.exceptions import (
    DecodeError,
    EventNotFoundError,
    LedgerInconsistencyError,
    LedgerRejectedError,
    LedgerTimeoutError,
)
from common.logging_config import get_logger
from common.path_key import derive_key, key_to_hex
from common.types import CrudFile, encode_metadata
from ledger.backend import LedgerBackend, LedgerEvent, TxReceipt

logger = get_logger(__name__)

CREATE_EVENT = "CreateFile"
UPDATE_EVENT = "UpdateFile"
DELETE_EVENT = "DeleteFile"


class LedgerClient:
    """
    Two-phase ledger access: every mutation is submitted, then confirmed by
    waiting for its receipt and locating the event the transaction emitted.
    """

    def __init__(
        self,
        backend: LedgerBackend,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT_SECONDS
    ):
        """
        Initialize ledger client.

        Args:
            backend: Transport to the ledger
            confirmation_timeout: Seconds to wait for a submitted transaction to be mined
        """
        self.backend = backend
        self.confirmation_timeout = confirmation_timeout

    async def create(
        self,
        path: str,
        content_id: ContentIdentifier,
        metadata: Optional[Mapping[str, str]] = None
    ) -> CrudFile:
        """
        Record a new file on the ledger.

        Returns:
            The confirmed record, carrying the ledger's key and timestamp

        Raises:
            LedgerRejectedError: If the ledger refuses the record
            LedgerTimeoutError: If confirmation does not arrive in time
            EventNotFoundError: If no CreateFile event matches the transaction
            LedgerInconsistencyError: If the event key is not the path key
        """
        metadata = dict(metadata or {})
        logger.info(f"Creating ledger record for {path} [cid={content_id}]")

        tx_hash = await self.backend.submit_create(path, str(content_id), encode_metadata(metadata))
        event = await self._confirm(tx_hash, CREATE_EVENT)

        expected_key = derive_key(path)
        if event.key != expected_key:
            raise LedgerInconsistencyError(
                f"CreateFile event key {key_to_hex(event.key)} does not match "
                f"path key {key_to_hex(expected_key)} for {path}"
            )

        record = CrudFile.from_ledger_tuple((path, str(content_id), event.timestamp, encode_metadata(metadata)))
        logger.info(f"Ledger record created for {path} [key={record.key_hex}, timestamp={record.timestamp}]")
        return record

    async def read(self, key: bytes) -> CrudFile:
        """
        Read the ledger's record for a key.

        Raises:
            RecordNotFoundError: If the ledger holds no record for key
            LedgerInconsistencyError: If the stored path does not hash to key
        """
        logger.debug(f"Reading ledger record [key={key_to_hex(key)}]")
        values = await self.backend.read_file(key)
        try:
            record = CrudFile.from_ledger_tuple(tuple(values))
        except DecodeError as e:
            raise LedgerInconsistencyError(f"Ledger returned an undecodable record for {key_to_hex(key)}: {e}") from e
        if record.key != key:
            raise LedgerInconsistencyError(
                f"Ledger record path {record.path} does not hash to requested key {key_to_hex(key)}"
            )
        return record

    async def update(
        self,
        key: bytes,
        content_id: ContentIdentifier,
        metadata: Optional[Mapping[str, str]] = None
    ) -> Tuple[bytes, int]:
        """
        Replace the content id and metadata of an existing record.

        Returns:
            Tuple of (key, new timestamp)

        Raises:
            RecordNotFoundError: If the ledger holds no record for key
        """
        logger.info(f"Updating ledger record [key={key_to_hex(key)}, cid={content_id}]")
        tx_hash = await self.backend.submit_update(key, str(content_id), encode_metadata(metadata))
        event = await self._confirm(tx_hash, UPDATE_EVENT)
        self._check_event_key(event, key)
        return event.key, event.timestamp

    async def delete(self, key: bytes) -> None:
        """
        Remove a record from the ledger.

        Raises:
            RecordNotFoundError: If the ledger holds no record for key
            LedgerInconsistencyError: If the DeleteFile event names another key
        """
        logger.info(f"Deleting ledger record [key={key_to_hex(key)}]")
        tx_hash = await self.backend.submit_delete(key)
        event = await self._confirm(tx_hash, DELETE_EVENT)
        self._check_event_key(event, key)

    async def list_keys(self) -> List[bytes]:
        """Return every key the ledger holds."""
        keys = [bytes(k) for k in await self.backend.read_all_keys()]
        logger.debug(f"Ledger holds {len(keys)} records")
        return keys

    async def read_all(self) -> Dict[bytes, CrudFile]:
        """Read every record on the ledger, keyed by path key."""
        records = {}
        for key in await self.list_keys():
            records[key] = await self.read(key)
        return records

    async def close(self) -> None:
        await self.backend.close()

    async def _confirm(self, tx_hash: str, event_name: str) -> LedgerEvent:
        receipt = await self._wait_for_receipt(tx_hash)
        if not receipt.succeeded:
            logger.warning(f"Transaction {tx_hash} reverted in block {receipt.block_number}")
            raise LedgerRejectedError(f"Transaction {tx_hash} was reverted by the ledger")

        events = await self.backend.get_events(event_name, receipt.block_number, receipt.block_number)
        for event in events:
            if event.tx_hash == tx_hash:
                logger.debug(
                    f"Confirmed {event_name} [tx={tx_hash}, block={receipt.block_number}, "
                    f"timestamp={event.timestamp}]"
                )
                return event

        raise EventNotFoundError(
            f"No {event_name} event for transaction {tx_hash} in block {receipt.block_number}"
        )

    async def _wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        try:
            return await asyncio.wait_for(
                self.backend.wait_for_receipt(tx_hash),
                timeout=self.confirmation_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Transaction {tx_hash} not confirmed within {self.confirmation_timeout}s")
            raise LedgerTimeoutError(
                f"Transaction {tx_hash} was not confirmed within {self.confirmation_timeout}s"
            ) from e

    @staticmethod
    def _check_event_key(event: LedgerEvent, key: bytes) -> None:
        if event.key != key:
            raise LedgerInconsistencyError(
                f"{event.name} event key {key_to_hex(event.key)} does not match "
                f"requested key {key_to_hex(key)}"
            )
