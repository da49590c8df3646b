"""Ledger access: the confirmation protocol and its backends."""

from ledger.backend import LedgerBackend, LedgerEvent, TxReceipt
from ledger.client import LedgerClient
from ledger.config import LedgerConfig, load_abi
from ledger.memory import InMemoryLedger

__all__ = [
    "LedgerBackend",
    "LedgerEvent",
    "TxReceipt",
    "LedgerClient",
    "LedgerConfig",
    "load_abi",
    "InMemoryLedger",
]
