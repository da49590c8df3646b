"""Content identifiers: SHA-256 digests wrapped as self-describing CIDs."""

import hashlib
import os
from dataclasses import dataclass
from typing import BinaryIO, Union

from multiformats import CID, multihash

from common.constants import (
    CID_V0_VERSION,
    CID_VERSION,
    CODEC_RAW,
    HASH_BLOCK_SIZE_BYTES,
    MULTIBASE_BASE32,
    MULTIBASE_BASE58BTC,
    MULTIHASH_SHA2_256,
)
from common.exceptions import LocalFileNotFoundError, LocalIOError, MalformedIdentifierError


class IncrementalDigest:
    """
    Calculate a SHA-256 digest incrementally for streaming data.

    Usage:
        calculator = IncrementalDigest()
        calculator.update(block1)
        calculator.update(block2)
        digest = calculator.finalize()
    """

    def __init__(self):
        """Initialize a new incremental digest calculator."""
        self._hasher = hashlib.sha256()
        self._finalized = False

    def update(self, data: bytes) -> None:
        """
        Update digest with new data.

        Args:
            data: Bytes to add to digest calculation
        """
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)

    def finalize(self) -> bytes:
        """
        Finalize digest calculation and return the raw digest.

        Returns:
            32-byte SHA-256 digest
        """
        self._finalized = True
        return self._hasher.digest()


@dataclass(frozen=True)
class ContentIdentifier:
    """
    Self-describing identifier of a byte stream.

    Holds the parts of a CID; encoding and decoding of the binary and
    multibase forms is done by multiformats.CID. CIDv0 identifiers are a
    bare sha2-256 multihash.
    """
    version: int
    codec: int
    hash_code: int
    digest: bytes

    @classmethod
    def compute(cls, stream: BinaryIO) -> "ContentIdentifier":
        """
        Compute the identifier of everything readable from a binary stream.

        Args:
            stream: Binary file-like object positioned at the start of the content

        Returns:
            CIDv1 with raw codec and sha2-256 multihash

        Raises:
            LocalIOError: If reading the stream fails
        """
        calculator = IncrementalDigest()
        try:
            while True:
                block = stream.read(HASH_BLOCK_SIZE_BYTES)
                if not block:
                    break
                calculator.update(block)
        except OSError as e:
            raise LocalIOError(f"Failed to read content for hashing: {e}") from e
        return cls(CID_VERSION, CODEC_RAW, MULTIHASH_SHA2_256, calculator.finalize())

    @classmethod
    def compute_bytes(cls, data: bytes) -> "ContentIdentifier":
        """Compute the identifier of an in-memory byte string."""
        return cls(CID_VERSION, CODEC_RAW, MULTIHASH_SHA2_256, hashlib.sha256(data).digest())

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> "ContentIdentifier":
        """
        Compute the identifier of a local file.

        Raises:
            LocalFileNotFoundError: If the file does not exist
            LocalIOError: If the file cannot be opened or read
        """
        try:
            with open(path, 'rb') as f:
                return cls.compute(f)
        except FileNotFoundError as e:
            raise LocalFileNotFoundError(f"File not found: {os.fspath(path)}") from e
        except OSError as e:
            raise LocalIOError(f"Cannot read {os.fspath(path)}: {e}") from e

    @classmethod
    def parse(cls, text: str) -> "ContentIdentifier":
        """
        Parse a canonical CID string.

        Accepts base32 CIDv1 ('b...'), base58btc CIDv1 ('z...') and
        CIDv0 ('Qm...').

        Raises:
            MalformedIdentifierError: If the text is not a valid CID
        """
        if not isinstance(text, str) or not text:
            raise MalformedIdentifierError("Content identifier must be a non-empty string")

        is_v0 = len(text) == 46 and text.startswith("Qm")
        if not is_v0 and text[0] not in (MULTIBASE_BASE32, MULTIBASE_BASE58BTC):
            raise MalformedIdentifierError(f"Unsupported multibase prefix '{text[0]}' in {text}")

        try:
            cid = CID.decode(text)
        except (KeyError, ValueError, TypeError, IndexError) as e:
            raise MalformedIdentifierError(f"Invalid content identifier {text}: {e}") from e

        if cid.version == CID_V0_VERSION and cid.hashfun.code != MULTIHASH_SHA2_256:
            raise MalformedIdentifierError(f"CIDv0 must wrap a sha2-256 digest: {text}")
        if cid.version not in (CID_V0_VERSION, CID_VERSION):
            raise MalformedIdentifierError(f"Unsupported CID version {cid.version}")
        if not cid.raw_digest:
            raise MalformedIdentifierError(f"Content identifier has an empty digest: {text}")
        return cls(cid.version, cid.codec.code, cid.hashfun.code, bytes(cid.raw_digest))

    def to_cid(self) -> CID:
        """multiformats.CID in the canonical base for this version."""
        base = "base58btc" if self.version == CID_V0_VERSION else "base32"
        return CID(base, self.version, self.codec, multihash.wrap(self.digest, self.hash_code))

    def to_string(self) -> str:
        """Canonical textual form (base32 for CIDv1, base58btc for CIDv0)."""
        return str(self.to_cid())

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"ContentIdentifier('{self.to_string()}')"
