"""Tests for the CrudFile record type."""

import json

import pytest

from common.cid import ContentIdentifier
from common.constants import MAX_TIMESTAMP
from common.exceptions import DecodeError, LocalFileNotFoundError, LocalIOError
from common.path_key import derive_key
from common.types import CrudFile, decode_metadata, encode_metadata, hash_file

HELLO_CID = "bafkreibm6jg3ux5qumhcn2b3flc3tyu6dmlb4xa7u5bf44yegnrjhc4yeq"


@pytest.fixture
def hello_file(tmp_path):
    path = tmp_path / "hello.txt"
    path.write_bytes(b"hello")
    return path


def test_from_file(hello_file):
    """Test a fresh record is unconfirmed and keyed by its path."""
    record = CrudFile.from_file(hello_file)

    assert record.path == str(hello_file)
    assert record.filename == "hello.txt"
    assert record.key == derive_key(str(hello_file))
    assert str(record.content_id) == HELLO_CID
    assert record.timestamp == 0
    assert record.metadata == {}


def test_from_file_missing(tmp_path):
    with pytest.raises(LocalFileNotFoundError):
        CrudFile.from_file(tmp_path / "missing.txt")


def test_from_file_directory(tmp_path):
    with pytest.raises(LocalIOError):
        CrudFile.from_file(tmp_path)


def test_from_file_without_file_name(tmp_path):
    with pytest.raises(LocalIOError):
        CrudFile.from_file(str(tmp_path) + "/")


def test_with_metadata_is_pure(hello_file):
    record = CrudFile.from_file(hello_file)
    tagged = record.with_metadata({"owner": "alice"})

    assert tagged.metadata == {"owner": "alice"}
    assert record.metadata == {}
    assert tagged.key == record.key


def test_set_timestamp_bounds(hello_file):
    record = CrudFile.from_file(hello_file)

    record.set_timestamp(MAX_TIMESTAMP)
    assert record.timestamp == MAX_TIMESTAMP

    with pytest.raises(ValueError):
        record.set_timestamp(-1)
    with pytest.raises(ValueError):
        record.set_timestamp(MAX_TIMESTAMP + 1)


def test_from_ledger_tuple():
    record = CrudFile.from_ledger_tuple(("docs/hello.txt", HELLO_CID, 1700000000, '{"k": "v"}'))

    assert record.path == "docs/hello.txt"
    assert record.filename == "hello.txt"
    assert record.key == derive_key("docs/hello.txt")
    assert record.timestamp == 1700000000
    assert record.metadata == {"k": "v"}


def test_from_ledger_tuple_empty_metadata():
    record = CrudFile.from_ledger_tuple(("a.txt", HELLO_CID, 1, ""))
    assert record.metadata == {}


@pytest.mark.parametrize("values", [
    ("a.txt", HELLO_CID, 1),
    ("a.txt", HELLO_CID, "1", "{}"),
    ("a.txt", "not-a-cid", 1, "{}"),
    ("a.txt", HELLO_CID, 1, "[1, 2]"),
    ("a.txt", HELLO_CID, 1, '{"n": 1}'),
    ("a.txt", HELLO_CID, 1, "{broken"),
    ("dir/", HELLO_CID, 1, "{}"),
    ("a.txt", HELLO_CID, -5, "{}"),
])
def test_from_ledger_tuple_rejects_bad_values(values):
    with pytest.raises(DecodeError):
        CrudFile.from_ledger_tuple(values)


def test_dict_round_trip(hello_file):
    record = CrudFile.from_file(hello_file).with_metadata({"k": "v"})
    record.set_timestamp(42)

    data = record.to_dict()

    assert data["key"] == list(record.key)
    assert data["cid"] == HELLO_CID
    assert json.loads(json.dumps(data)) == data
    assert CrudFile.from_dict(data) == record


def test_from_dict_missing_field(hello_file):
    data = CrudFile.from_file(hello_file).to_dict()
    del data["cid"]

    with pytest.raises(DecodeError):
        CrudFile.from_dict(data)


def test_metadata_helpers():
    assert decode_metadata(encode_metadata({"x": "1"})) == {"x": "1"}
    assert encode_metadata(None) == "{}"


@pytest.mark.asyncio
async def test_hash_file_runs_from_file(hello_file):
    record = await hash_file(hello_file)

    assert record == CrudFile.from_file(hello_file)
    assert str(record.content_id) == HELLO_CID


@pytest.mark.asyncio
async def test_hash_file_missing(tmp_path):
    with pytest.raises(LocalFileNotFoundError):
        await hash_file(tmp_path / "missing.txt")
