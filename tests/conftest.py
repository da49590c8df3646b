"""Shared pytest fixtures for all tests."""

import pytest
from pathlib import Path

from cli.config import Config
from crudfs.crud_fs import CrudFs
from crudfs.manifest import Manifest
from ledger.client import LedgerClient
from ledger.memory import InMemoryLedger
from store.client import StoreClient
from store.memory import InMemoryBlobStore

CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

# Well-known throwaway key from the eth-account documentation
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .crudfs directory
    """
    config_dir = tmp_path / '.crudfs'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for tracking.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing bulk operations.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files


@pytest.fixture
def manifest_path(tmp_path):
    """Path of a manifest that does not exist yet."""
    return tmp_path / 'manifest.json'


@pytest.fixture
def memory_ledger():
    return InMemoryLedger()


@pytest.fixture
def memory_store():
    return InMemoryBlobStore()


@pytest.fixture
def crud_fs(memory_ledger, memory_store, manifest_path):
    """CrudFs wired to in-memory ledger and store with an empty manifest."""
    return CrudFs(
        LedgerClient(memory_ledger, confirmation_timeout=5.0),
        StoreClient(memory_store),
        Manifest.new(CONTRACT_ADDRESS),
        manifest_path,
    )


@pytest.fixture
def contract_address():
    return CONTRACT_ADDRESS


@pytest.fixture
def private_key():
    return TEST_PRIVATE_KEY
