"""Tests for CLI configuration module."""

import json
from cli.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.crudfs' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['manifest_path'] == 'manifest.json'
    assert config.data['request_timeout'] == 30.0
    assert config.data['confirmation_timeout'] == 120.0
    assert config.data['gas_limit'] == 1_000_000
    assert config.data['gas_price'] == 80_000_000_000
    assert 'private_key' not in config.data


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file."""
    config_path = tmp_path / '.crudfs' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'manifest_path': '/data/crudfs/manifest.json',
        'store_host': 'http://estuary.local:3004',
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.get_manifest_path() == '/data/crudfs/manifest.json'
    assert config.get_store_host() == 'http://estuary.local:3004'

    assert config.get_timeout() == 30.0
    assert config.get_confirmation_timeout() == 120.0


def test_config_handles_corrupted_file(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.crudfs' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)
    assert config.data['manifest_path'] == 'manifest.json'

    backup_path = config_path.with_suffix('.json.bak')
    assert backup_path.exists()


def test_config_rejects_non_object(tmp_path):
    """Test that a JSON list falls back to defaults."""
    config_path = tmp_path / '.crudfs' / 'config.json'
    config_path.parent.mkdir(parents=True)
    config_path.write_text('[1, 2, 3]')

    config = Config(config_path)

    assert config.get_manifest_path() == 'manifest.json'
    assert config_path.with_suffix('.json.bak').exists()


def test_config_get_timeout(temp_config):
    """Test timeout retrieval."""
    assert temp_config.get_timeout() == 30.0

    temp_config.data['request_timeout'] = 60
    assert temp_config.get_timeout() == 60.0


def test_config_get_ledger_config(temp_config):
    """Test ledger transaction settings retrieval."""
    ledger_config = temp_config.get_ledger_config()

    assert ledger_config['gas_limit'] == 1_000_000
    assert ledger_config['gas_price'] == 80_000_000_000
    assert ledger_config['poll_interval'] == 1.0
    assert ledger_config['confirmation_timeout'] == 120.0

    temp_config.data['gas_limit'] = 250_000
    temp_config.data['confirmation_timeout'] = 30

    ledger_config = temp_config.get_ledger_config()
    assert ledger_config['gas_limit'] == 250_000
    assert ledger_config['confirmation_timeout'] == 30.0


def test_config_directory_created_if_missing(tmp_path):
    """Test that config directory is created if it doesn't exist."""
    config_path = tmp_path / 'nested' / 'deep' / '.crudfs' / 'config.json'

    assert not config_path.parent.exists()

    config = Config(config_path)
    assert config_path.parent.exists()
    assert config_path.exists()
