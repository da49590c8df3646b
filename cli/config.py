"""Configuration management for CrudFs CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path

from common.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE_WEI,
    DEFAULT_MANIFEST_FILENAME,
    DEFAULT_RECEIPT_POLL_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_STORE_HOST,
)
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.crudfs' / 'config.json'


class Config:
    """Manages CLI tunables stored in a JSON file. Secrets live in the environment."""

    DEFAULT_CONFIG = {
        "manifest_path": DEFAULT_MANIFEST_FILENAME,
        "store_host": os.environ.get("CRUDFS_STORE_HOST", DEFAULT_STORE_HOST),
        "request_timeout": DEFAULT_REQUEST_TIMEOUT_SECONDS,
        "confirmation_timeout": DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
        "poll_interval": DEFAULT_RECEIPT_POLL_INTERVAL_SECONDS,
        "gas_limit": DEFAULT_GAS_LIMIT,
        "gas_price": DEFAULT_GAS_PRICE_WEI,
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.crudfs/config.json)
        """
        self.config_path = Path(config_path)
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A file that cannot be parsed is copied to '<name>.json.bak' and
        defaults are used.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.crudfs' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be a JSON object")
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (ValueError, OSError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Unreadable config {self.config_path} ({e}); backing up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Could not back up config: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except OSError as e:
                logger.warning(f"Could not write default config {self.config_path}: {e}")
            return config

    def get_manifest_path(self) -> str:
        return self.data.get('manifest_path', DEFAULT_MANIFEST_FILENAME)

    def get_store_host(self) -> str:
        return self.data.get('store_host', DEFAULT_STORE_HOST)

    def get_timeout(self) -> float:
        """
        Get blob store request timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return float(self.data.get('request_timeout', DEFAULT_REQUEST_TIMEOUT_SECONDS))

    def get_confirmation_timeout(self) -> float:
        return float(self.data.get('confirmation_timeout', DEFAULT_CONFIRMATION_TIMEOUT_SECONDS))

    def get_ledger_config(self) -> dict:
        """
        Get transaction settings for the ledger backend.

        Returns:
            Dictionary with 'gas_limit', 'gas_price', 'poll_interval' and 'confirmation_timeout'
        """
        return {
            'gas_limit': int(self.data.get('gas_limit', DEFAULT_GAS_LIMIT)),
            'gas_price': int(self.data.get('gas_price', DEFAULT_GAS_PRICE_WEI)),
            'poll_interval': float(self.data.get('poll_interval', DEFAULT_RECEIPT_POLL_INTERVAL_SECONDS)),
            'confirmation_timeout': self.get_confirmation_timeout(),
        }
