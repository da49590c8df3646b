"""Secrets and endpoints read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from common.exceptions import ConfigError

REQUIRED_VARIABLES = (
    "CRUDFS_API_URL",
    "CRUDFS_API_KEY",
    "CRUDFS_CHAIN_ID",
    "CRUDFS_PRIVATE_KEY",
    "CRUDFS_CONTRACT_ADDRESS",
    "CRUDFS_ESTUARY_API_KEY",
)


@dataclass(frozen=True)
class Settings:
    """Ledger and blob store credentials."""
    api_url: str
    api_key: str
    chain_id: int
    private_key: str
    contract_address: str
    estuary_api_key: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from the environment.

        Raises:
            ConfigError: If any variable is missing (all missing names are
                reported together) or CRUDFS_CHAIN_ID is not an integer
        """
        environ = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            chain_id = int(environ["CRUDFS_CHAIN_ID"])
        except ValueError as e:
            raise ConfigError(
                f"CRUDFS_CHAIN_ID must be an integer, got {environ['CRUDFS_CHAIN_ID']!r}"
            ) from e

        return cls(
            api_url=environ["CRUDFS_API_URL"],
            api_key=environ["CRUDFS_API_KEY"],
            chain_id=chain_id,
            private_key=environ["CRUDFS_PRIVATE_KEY"],
            contract_address=environ["CRUDFS_CONTRACT_ADDRESS"],
            estuary_api_key=environ["CRUDFS_ESTUARY_API_KEY"],
        )

    def __repr__(self) -> str:
        return (
            f"Settings(api_url={self.api_url!r}, chain_id={self.chain_id}, "
            f"contract_address={self.contract_address!r})"
        )
