"""Tests for manifest persistence and validation."""

import json
import os
from unittest.mock import patch

import pytest

from common.exceptions import (
    InvalidLedgerAddressError,
    LocalIOError,
    ManifestNotFoundError,
    ManifestParseError,
)
from common.types import CrudFile
from crudfs.manifest import Manifest


@pytest.fixture
def record(sample_file):
    record = CrudFile.from_file(sample_file).with_metadata({"owner": "alice"})
    record.set_timestamp(1700000000)
    return record


def test_new_manifest_is_empty(contract_address):
    manifest = Manifest.new(contract_address)

    assert len(manifest) == 0
    assert manifest.ledger_address == contract_address


@pytest.mark.parametrize("address", ["", "0x123", "5FbDB2315678afecb367f032d93F642f64180aa3", "0x" + "g" * 40])
def test_new_rejects_invalid_address(address):
    with pytest.raises(InvalidLedgerAddressError):
        Manifest.new(address)


def test_add_get_remove(contract_address, record):
    manifest = Manifest.new(contract_address)

    manifest.add(record)
    assert manifest.contains(record.path)
    assert manifest.get(record.path) == record

    manifest.remove(record.path)
    assert not manifest.contains(record.path)
    assert manifest.get(record.path) is None


def test_add_is_last_write_wins(contract_address, record):
    manifest = Manifest.new(contract_address)
    manifest.add(record)
    manifest.add(record.with_metadata({"owner": "bob"}))

    assert len(manifest) == 1
    assert manifest.get(record.path).metadata == {"owner": "bob"}


def test_remove_absent_is_noop(contract_address):
    manifest = Manifest.new(contract_address)
    manifest.remove("never/tracked.txt")
    assert len(manifest) == 0


def test_write_read_round_trip(contract_address, record, manifest_path):
    manifest = Manifest.new(contract_address)
    manifest.add(record)

    manifest.write(manifest_path)
    loaded = Manifest.read(manifest_path)

    assert loaded == manifest
    assert loaded.get(record.path) == record


def test_write_format(contract_address, record, manifest_path):
    """Test the on-disk layout: contract_address plus files keyed by hex key."""
    manifest = Manifest.new(contract_address)
    manifest.add(record)
    manifest.write(manifest_path)

    text = manifest_path.read_text()
    data = json.loads(text)

    assert text.startswith("{\n  ")
    assert data["contract_address"] == contract_address
    entry = data["files"][record.key_hex]
    assert entry["path"] == record.path
    assert entry["filename"] == "test.txt"
    assert entry["key"] == list(record.key)
    assert entry["cid"] == str(record.content_id)
    assert entry["timestamp"] == 1700000000
    assert entry["metadata"] == {"owner": "alice"}


def test_write_is_idempotent(contract_address, record, manifest_path):
    manifest = Manifest.new(contract_address)
    manifest.add(record)
    manifest.add(record)
    manifest.write(manifest_path)
    first = manifest_path.read_bytes()

    manifest.write(manifest_path)

    assert manifest_path.read_bytes() == first
    assert [p.name for p in manifest_path.parent.iterdir() if p.name.endswith(".tmp")] == []


def test_failed_write_keeps_previous_file(contract_address, record, manifest_path):
    manifest = Manifest.new(contract_address)
    manifest.write(manifest_path)
    before = manifest_path.read_bytes()

    manifest.add(record)
    with patch("crudfs.manifest.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(LocalIOError):
            manifest.write(manifest_path)

    assert manifest_path.read_bytes() == before
    assert [p.name for p in manifest_path.parent.iterdir() if p.name.endswith(".tmp")] == []


def test_read_missing(manifest_path):
    with pytest.raises(ManifestNotFoundError):
        Manifest.read(manifest_path)


def test_read_invalid_json(manifest_path):
    manifest_path.write_text("{ not json")
    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_read_invalid_structure(manifest_path, contract_address):
    manifest_path.write_text(json.dumps({"contract_address": contract_address}))
    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_read_invalid_address(manifest_path):
    manifest_path.write_text(json.dumps({"contract_address": "nope", "files": {}}))
    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_read_rejects_mismatched_map_key(manifest_path, contract_address, record):
    entry = record.to_dict()
    manifest_path.write_text(json.dumps({"contract_address": contract_address, "files": {"00" * 32: entry}}))

    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_read_rejects_key_not_derived_from_path(manifest_path, contract_address, record):
    entry = record.to_dict()
    entry["path"] = "somewhere/else.txt"
    manifest_path.write_text(
        json.dumps({"contract_address": contract_address, "files": {record.key_hex: entry}})
    )

    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_read_rejects_malformed_cid(manifest_path, contract_address, record):
    entry = record.to_dict()
    entry["cid"] = "bogus"
    manifest_path.write_text(
        json.dumps({"contract_address": contract_address, "files": {record.key_hex: entry}})
    )

    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_read_rejects_non_byte_key(manifest_path, contract_address, record):
    entry = record.to_dict()
    entry["key"] = [300] * 32
    manifest_path.write_text(
        json.dumps({"contract_address": contract_address, "files": {record.key_hex: entry}})
    )

    with pytest.raises(ManifestParseError):
        Manifest.read(manifest_path)


def test_iteration_yields_records(contract_address, multiple_sample_files):
    manifest = Manifest.new(contract_address)
    for path in multiple_sample_files:
        manifest.add(CrudFile.from_file(path))

    assert sorted(r.path for r in manifest) == sorted(str(p) for p in multiple_sample_files)
    assert all(manifest.contains(os.fspath(p)) for p in multiple_sample_files)
