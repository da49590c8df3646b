"""Path keys: Keccak-256 of a file path, the identity of a record on the ledger."""

import binascii
import os
from typing import Union

from eth_utils import keccak

from common.constants import PATH_KEY_SIZE_BYTES
from common.exceptions import DecodeError


def derive_key(path: Union[str, os.PathLike]) -> bytes:
    """
    Derive the 32-byte ledger key for a path.

    The path is hashed exactly as given (no normalization), so
    'a/b.txt' and './a/b.txt' are different keys.

    Args:
        path: File path as str or path-like object

    Returns:
        Keccak-256 digest of the UTF-8 encoded path
    """
    return keccak(os.fspath(path).encode("utf-8", "surrogateescape"))


def key_to_hex(key: bytes) -> str:
    """Lower-case hex form of a key, without 0x prefix."""
    return key.hex()


def key_from_hex(text: str) -> bytes:
    """
    Decode a key from its hex form.

    Accepts an optional 0x prefix.

    Raises:
        DecodeError: If the text is not 64 hex characters
    """
    if text.startswith(('0x', '0X')):
        text = text[2:]
    try:
        key = binascii.unhexlify(text)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid hex key '{text}': {e}") from e
    if len(key) != PATH_KEY_SIZE_BYTES:
        raise DecodeError(f"Key must be {PATH_KEY_SIZE_BYTES} bytes, got {len(key)}")
    return key
