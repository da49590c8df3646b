"""Ledger backend for the CrudFs contract on an Ethereum JSON-RPC node."""

import asyncio
from contextlib import contextmanager
from typing import List, Optional, Sequence, Tuple

import aiohttp
from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3RPCError

from common.exceptions import (
    ConfigError,
    LedgerRejectedError,
    LedgerUnavailableError,
    RecordNotFoundError,
)
from common.logging_config import get_logger
from common.path_key import key_to_hex
from ledger.backend import LedgerBackend, LedgerEvent, TxReceipt
from ledger.config import LedgerConfig

logger = get_logger(__name__)

NOT_FOUND_REASON = "File does not exist"


class EthLedgerBackend(LedgerBackend):
    """
    Talks to the CrudFs contract through web3's async HTTP provider.

    Transactions are built with fixed gas settings, signed locally with the
    configured private key and sent raw. Every mutation is simulated with
    eth_call first so that contract reverts surface with their reason
    before anything is broadcast.
    """

    def __init__(self, config: LedgerConfig, web3: Optional[AsyncWeb3] = None):
        """
        Initialize the backend.

        Args:
            config: Ledger connection settings
            web3: Pre-built AsyncWeb3 instance (a provider for config.rpc_url is created when omitted)

        Raises:
            ConfigError: If the private key or contract address is invalid
        """
        self.config = config
        self.web3 = web3 if web3 is not None else AsyncWeb3(AsyncHTTPProvider(config.rpc_url))

        try:
            self.account = Account.from_key(config.private_key)
            address = AsyncWeb3.to_checksum_address(config.contract_address)
        except ValueError as e:
            raise ConfigError(f"Invalid ledger credentials or contract address: {e}") from e

        self.contract = self.web3.eth.contract(address=address, abi=config.abi)
        self._send_lock = asyncio.Lock()
        logger.info(f"Initialized EthLedgerBackend [contract={address}, chain_id={config.chain_id}]")

    async def submit_create(self, path: str, cid: str, metadata: str) -> str:
        return await self._send(self.contract.functions.createFile(path, cid, metadata), f"createFile({path})")

    async def submit_update(self, key: bytes, cid: str, metadata: str) -> str:
        return await self._send(
            self.contract.functions.updateFile(key, cid, metadata),
            f"updateFile({key_to_hex(key)})"
        )

    async def submit_delete(self, key: bytes) -> str:
        return await self._send(self.contract.functions.deleteFile(key), f"deleteFile({key_to_hex(key)})")

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Poll for the receipt of a transaction until it is mined."""
        while True:
            with self._translate_errors(f"receipt for {tx_hash}"):
                try:
                    receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
                except TransactionNotFound:
                    receipt = None

            if receipt is not None:
                logger.debug(f"Receipt for {tx_hash}: block={receipt['blockNumber']}, status={receipt['status']}")
                return TxReceipt(
                    tx_hash=tx_hash,
                    block_number=receipt["blockNumber"],
                    succeeded=receipt["status"] == 1
                )

            await asyncio.sleep(self.config.poll_interval)

    async def get_events(self, name: str, from_block: int, to_block: int) -> List[LedgerEvent]:
        event = getattr(self.contract.events, name)
        with self._translate_errors(f"{name} events in blocks {from_block}-{to_block}"):
            logs = await event.get_logs(from_block=from_block, to_block=to_block)

        return [
            LedgerEvent(
                name=name,
                key=bytes(log["args"]["key"]),
                timestamp=int(log["args"]["timestamp"]),
                tx_hash=AsyncWeb3.to_hex(log["transactionHash"]),
                block_number=log["blockNumber"],
            )
            for log in logs
        ]

    async def read_file(self, key: bytes) -> Tuple:
        with self._translate_errors(f"readFile({key_to_hex(key)})"):
            result = await self.contract.functions.readFile(key).call()
        return tuple(result)

    async def read_all_keys(self) -> Sequence[bytes]:
        with self._translate_errors("readAllFileKeys()"):
            keys = await self.contract.functions.readAllFileKeys().call()
        return [bytes(k) for k in keys]

    async def close(self) -> None:
        disconnect = getattr(self.web3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def _send(self, function, description: str) -> str:
        """Simulate, build, sign and broadcast a contract call."""
        sender = self.account.address

        async with self._send_lock:
            with self._translate_errors(description):
                await function.call({"from": sender})

                nonce = await self.web3.eth.get_transaction_count(sender, "pending")
                tx = await function.build_transaction({
                    "from": sender,
                    "nonce": nonce,
                    "chainId": self.config.chain_id,
                    "gas": self.config.gas_limit,
                    "gasPrice": self.config.gas_price,
                })
                signed = self.account.sign_transaction(tx)
                tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hash_hex = AsyncWeb3.to_hex(tx_hash)
        logger.debug(f"Sent {description} [tx={tx_hash_hex}, nonce={nonce}]")
        return tx_hash_hex

    @contextmanager
    def _translate_errors(self, description: str):
        try:
            yield
        except ContractLogicError as e:
            reason = str(e)
            if NOT_FOUND_REASON in reason:
                raise RecordNotFoundError(f"{description}: {NOT_FOUND_REASON}") from e
            logger.warning(f"Ledger reverted {description}: {reason}")
            raise LedgerRejectedError(f"Ledger reverted {description}: {reason}") from e
        except Web3RPCError as e:
            logger.warning(f"Ledger RPC error for {description}: {e}")
            raise LedgerRejectedError(f"Ledger RPC error for {description}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Ledger unreachable during {description}: {e}")
            raise LedgerUnavailableError(f"Ledger unreachable during {description}: {e}") from e
