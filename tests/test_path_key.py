"""Tests for path key derivation."""

from pathlib import Path

import pytest

from common.exceptions import DecodeError
from common.path_key import derive_key, key_from_hex, key_to_hex

EMPTY_KECCAK = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
HELLO_KECCAK = "1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8"


def test_derive_key_is_keccak256():
    """Test that keys are Ethereum keccak256, not SHA3-256."""
    assert key_to_hex(derive_key("")) == EMPTY_KECCAK
    assert key_to_hex(derive_key("hello")) == HELLO_KECCAK


def test_derive_key_is_deterministic():
    assert derive_key("docs/a.txt") == derive_key("docs/a.txt")
    assert len(derive_key("docs/a.txt")) == 32


def test_distinct_paths_give_distinct_keys():
    paths = [f"dir{i % 7}/file{i}.txt" for i in range(2000)]
    assert len({derive_key(p) for p in paths}) == len(paths)


def test_derive_key_accepts_path_objects():
    assert derive_key(Path("docs") / "a.txt") == derive_key("docs/a.txt")


def test_derive_key_does_not_normalize():
    """Test that the path is hashed exactly as given."""
    assert derive_key("./docs/a.txt") != derive_key("docs/a.txt")


def test_derive_key_ignores_content(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("one")
    before = derive_key(path)
    path.write_text("two")

    assert derive_key(path) == before


def test_hex_round_trip():
    key = derive_key("hello")

    assert key_from_hex(key_to_hex(key)) == key
    assert key_from_hex("0x" + key_to_hex(key)) == key
    assert key_to_hex(key) == key_to_hex(key).lower()


@pytest.mark.parametrize("text", ["", "zz" * 32, "ab" * 31, "abc"])
def test_key_from_hex_rejects_invalid(text):
    with pytest.raises(DecodeError):
        key_from_hex(text)
