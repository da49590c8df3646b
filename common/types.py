"""Shared data type definitions (CrudFile)."""

import asyncio
import json
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from common.cid import ContentIdentifier
from common.constants import MAX_TIMESTAMP, PATH_KEY_SIZE_BYTES
from common.exceptions import DecodeError, LocalIOError, MalformedIdentifierError
from common.path_key import derive_key


@dataclass
class CrudFile:
    """
    One tracked file: where it lives locally, what its content is, and
    what the ledger recorded about it.

    A timestamp of 0 means the record has not been confirmed by the ledger.
    """
    path: str
    filename: str
    key: bytes
    content_id: ContentIdentifier
    timestamp: int = 0
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "CrudFile":
        """
        Build an unconfirmed record for a local file.

        Args:
            path: Local file path, kept exactly as given

        Raises:
            LocalFileNotFoundError: If the file does not exist
            LocalIOError: If the file cannot be read or the path has no file name
        """
        path = os.fspath(path)
        filename = os.path.basename(path)
        if not filename:
            raise LocalIOError(f"Path has no file name component: {path!r}")
        content_id = ContentIdentifier.from_path(path)
        return cls(
            path=path,
            filename=filename,
            key=derive_key(path),
            content_id=content_id,
        )

    @property
    def key_hex(self) -> str:
        return self.key.hex()

    def copy(self) -> "CrudFile":
        return replace(self, metadata=dict(self.metadata))

    def with_metadata(self, metadata: Mapping[str, str]) -> "CrudFile":
        """Return a copy of this record carrying the given metadata."""
        return replace(self, metadata=dict(metadata))

    def set_metadata(self, metadata: Mapping[str, str]) -> None:
        self.metadata = dict(metadata)

    def set_timestamp(self, timestamp: int) -> None:
        """
        Set the ledger timestamp.

        Raises:
            ValueError: If timestamp is outside the unsigned 64-bit range
        """
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError(f"Timestamp must be an integer, got {type(timestamp).__name__}")
        if timestamp < 0 or timestamp > MAX_TIMESTAMP:
            raise ValueError(f"Timestamp out of range: {timestamp}")
        self.timestamp = timestamp

    @classmethod
    def from_ledger_tuple(cls, values: Sequence[Any]) -> "CrudFile":
        """
        Decode the ledger's read result (path, cid, timestamp, metadata_json).

        Key and filename are re-derived from the path.

        Raises:
            DecodeError: If the tuple does not describe a valid record
        """
        if not isinstance(values, (tuple, list)) or len(values) != 4:
            raise DecodeError(f"Ledger record must have 4 fields, got {values!r}")

        path, cid_text, timestamp, metadata_json = values
        if not isinstance(path, str) or not isinstance(cid_text, str):
            raise DecodeError("Ledger record path and cid must be strings")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise DecodeError(f"Ledger record timestamp must be an integer, got {timestamp!r}")
        if timestamp < 0 or timestamp > MAX_TIMESTAMP:
            raise DecodeError(f"Ledger record timestamp out of range: {timestamp}")
        if not isinstance(metadata_json, str):
            raise DecodeError("Ledger record metadata must be a JSON string")

        filename = os.path.basename(path)
        if not filename:
            raise DecodeError(f"Ledger record path has no file name component: {path!r}")

        try:
            content_id = ContentIdentifier.parse(cid_text)
        except MalformedIdentifierError as e:
            raise DecodeError(f"Ledger record has invalid cid: {e}") from e

        return cls(
            path=path,
            filename=filename,
            key=derive_key(path),
            content_id=content_id,
            timestamp=timestamp,
            metadata=decode_metadata(metadata_json),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Manifest entry form."""
        return {
            "path": self.path,
            "filename": self.filename,
            "key": list(self.key),
            "cid": str(self.content_id),
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CrudFile":
        """
        Build a record from its manifest entry form.

        Raises:
            DecodeError: If a field is missing or malformed
        """
        try:
            key = bytes(data["key"])
            content_id = ContentIdentifier.parse(data["cid"])
            record = cls(
                path=data["path"],
                filename=data["filename"],
                key=key,
                content_id=content_id,
                timestamp=data["timestamp"],
                metadata=dict(data["metadata"]),
            )
        except KeyError as e:
            raise DecodeError(f"Record is missing field {e}") from e
        except (TypeError, ValueError, MalformedIdentifierError) as e:
            raise DecodeError(f"Invalid record: {e}") from e

        if len(record.key) != PATH_KEY_SIZE_BYTES:
            raise DecodeError(f"Record key must be {PATH_KEY_SIZE_BYTES} bytes")
        return record


async def hash_file(path: Union[str, os.PathLike]) -> CrudFile:
    """CrudFile.from_file, run in the default executor."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, CrudFile.from_file, path)


def encode_metadata(metadata: Optional[Mapping[str, str]]) -> str:
    """Serialize metadata with sorted keys so equal maps give equal strings."""
    return json.dumps(dict(metadata or {}), sort_keys=True)


def decode_metadata(text: str) -> Dict[str, str]:
    """
    Parse a metadata JSON string. An empty string is an empty map.

    Raises:
        DecodeError: If the text is not a JSON object of string values
    """
    if not text:
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Metadata is not valid JSON: {e}") from e
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise DecodeError("Metadata must be a JSON object of string values")
    return value
