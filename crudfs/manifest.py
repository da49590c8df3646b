"""Local manifest: the records this client has pushed, persisted as JSON."""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError, field_validator

from common.constants import MAX_TIMESTAMP, PATH_KEY_SIZE_BYTES
from common.exceptions import (
    DecodeError,
    InvalidLedgerAddressError,
    LocalIOError,
    ManifestNotFoundError,
    ManifestParseError,
)
from common.logging_config import get_logger
from common.path_key import derive_key, key_to_hex
from common.types import CrudFile

logger = get_logger(__name__)

LEDGER_ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')


class ManifestEntryModel(BaseModel):
    """Schema of one tracked record in the manifest file."""
    path: StrictStr
    filename: StrictStr
    key: List[StrictInt] = Field(min_length=PATH_KEY_SIZE_BYTES, max_length=PATH_KEY_SIZE_BYTES)
    cid: StrictStr
    timestamp: StrictInt = Field(ge=0, le=MAX_TIMESTAMP)
    metadata: Dict[StrictStr, StrictStr]

    @field_validator('key')
    @classmethod
    def key_bytes_in_range(cls, value: List[int]) -> List[int]:
        if any(b < 0 or b > 255 for b in value):
            raise ValueError("key entries must be bytes (0-255)")
        return value


class ManifestModel(BaseModel):
    """Schema of the manifest file."""
    contract_address: StrictStr
    files: Dict[StrictStr, ManifestEntryModel]


def validate_ledger_address(address: str) -> str:
    """
    Check that address is '0x' followed by 40 hex characters.

    Raises:
        InvalidLedgerAddressError: If it is not
    """
    if not isinstance(address, str) or not LEDGER_ADDRESS_PATTERN.match(address):
        raise InvalidLedgerAddressError(f"Invalid ledger address: {address!r}")
    return address


class Manifest:
    """
    Map of path key (hex) to the record last pushed for that path, bound to
    one ledger contract address.
    """

    def __init__(self, ledger_address: str, files: Optional[Dict[str, CrudFile]] = None):
        self.ledger_address = validate_ledger_address(ledger_address)
        self.files: Dict[str, CrudFile] = dict(files or {})

    @classmethod
    def new(cls, ledger_address: str) -> "Manifest":
        """
        Create an empty manifest.

        Raises:
            InvalidLedgerAddressError: If ledger_address is malformed
        """
        return cls(ledger_address)

    @classmethod
    def read(cls, path: Union[str, os.PathLike]) -> "Manifest":
        """
        Load a manifest from disk.

        Raises:
            ManifestNotFoundError: If the file does not exist
            ManifestParseError: If the file is not a valid manifest
            LocalIOError: If the file cannot be read
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except FileNotFoundError as e:
            raise ManifestNotFoundError(f"Manifest not found: {os.fspath(path)}") from e
        except json.JSONDecodeError as e:
            raise ManifestParseError(f"Manifest {os.fspath(path)} is not valid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise ManifestParseError(f"Manifest {os.fspath(path)} is not UTF-8 text: {e}") from e
        except OSError as e:
            raise LocalIOError(f"Cannot read manifest {os.fspath(path)}: {e}") from e

        try:
            model = ManifestModel.model_validate(raw)
        except ValidationError as e:
            raise ManifestParseError(f"Manifest {os.fspath(path)} has invalid structure: {e}") from e

        try:
            ledger_address = validate_ledger_address(model.contract_address)
        except InvalidLedgerAddressError as e:
            raise ManifestParseError(str(e)) from e

        files = {}
        for key_hex, entry in model.files.items():
            try:
                record = CrudFile.from_dict(entry.model_dump())
            except DecodeError as e:
                raise ManifestParseError(f"Manifest entry {key_hex} is invalid: {e}") from e

            if record.key_hex != key_hex:
                raise ManifestParseError(f"Manifest entry {key_hex} holds record with key {record.key_hex}")
            if record.key != derive_key(record.path):
                raise ManifestParseError(f"Manifest entry {key_hex} key is not the path key of {record.path}")
            files[key_hex] = record

        logger.debug(f"Loaded manifest {os.fspath(path)} with {len(files)} records")
        return cls(ledger_address, files)

    def write(self, path: Union[str, os.PathLike]) -> None:
        """
        Persist the manifest as pretty JSON.

        The content goes to a temporary sibling file that is renamed over
        path, so a failed write leaves the previous manifest intact.

        Raises:
            LocalIOError: If the manifest cannot be written
        """
        target = Path(path)
        payload = json.dumps(self.to_dict(), indent=2)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                'w',
                encoding='utf-8',
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix='.tmp',
                delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise LocalIOError(f"Cannot write manifest {target}: {e}") from e

        logger.debug(f"Wrote manifest {target} with {len(self.files)} records")

    def contains(self, path: Union[str, os.PathLike]) -> bool:
        return key_to_hex(derive_key(path)) in self.files

    def get(self, path: Union[str, os.PathLike]) -> Optional[CrudFile]:
        return self.files.get(key_to_hex(derive_key(path)))

    def get_by_key(self, key: bytes) -> Optional[CrudFile]:
        return self.files.get(key_to_hex(key))

    def add(self, record: CrudFile) -> None:
        """Insert or replace the entry for record's key."""
        self.files[record.key_hex] = record

    def remove(self, path: Union[str, os.PathLike]) -> None:
        """Drop the entry for path; absent paths are ignored."""
        self.files.pop(key_to_hex(derive_key(path)), None)

    def remove_key(self, key: bytes) -> None:
        self.files.pop(key_to_hex(key), None)

    def to_dict(self) -> dict:
        return {
            "contract_address": self.ledger_address,
            "files": {key_hex: record.to_dict() for key_hex, record in self.files.items()},
        }

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[CrudFile]:
        return iter(list(self.files.values()))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return self.ledger_address == other.ledger_address and self.files == other.files

    def __repr__(self) -> str:
        return f"Manifest(ledger_address={self.ledger_address!r}, files={len(self.files)})"
