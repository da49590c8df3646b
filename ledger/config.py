"""Connection settings for the Ethereum ledger backend."""

import json
from dataclasses import dataclass, field
from importlib import resources
from typing import Any, Dict, List

from common.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE_WEI,
    DEFAULT_RECEIPT_POLL_INTERVAL_SECONDS,
)

ABI_RESOURCE = "crud_fs_abi.json"


def load_abi() -> List[Dict[str, Any]]:
    """Load the CrudFs contract ABI shipped with this package."""
    text = resources.files("ledger").joinpath(ABI_RESOURCE).read_text(encoding="utf-8")
    return json.loads(text)


@dataclass
class LedgerConfig:
    """
    Everything needed to reach and sign for the CrudFs contract.

    The RPC endpoint is '{api_url}/{api_key}', the layout used by hosted
    node providers.
    """
    api_url: str
    api_key: str
    chain_id: int
    private_key: str
    contract_address: str
    abi: List[Dict[str, Any]] = field(default_factory=load_abi)
    gas_limit: int = DEFAULT_GAS_LIMIT
    gas_price: int = DEFAULT_GAS_PRICE_WEI
    poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL_SECONDS
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT_SECONDS

    @property
    def rpc_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.api_key}"

    def __repr__(self) -> str:
        return (
            f"LedgerConfig(api_url={self.api_url!r}, chain_id={self.chain_id}, "
            f"contract_address={self.contract_address!r})"
        )
