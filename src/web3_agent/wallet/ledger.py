"""Ledger capability interface and its Web3 JSON-RPC implementation."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.middleware import ExtraDataToPOAMiddleware

from web3_agent.errors import LedgerCallError
from web3_agent.wallet.chains import Chain

logger = logging.getLogger("web3_agent.wallet.ledger")

# Minimal ERC-20 ABI: the three calls the wallet tools need.
ERC20_ABI: list[dict] = [
    {
        "name": "transfer",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Chains that do not need the POA extra-data middleware.
_NON_POA_CHAIN_IDS = {1, 11155111, 31337}


class LedgerClient(ABC):
    """What the wallet tools need from a chain client.

    Amounts are always integers in minimal units; every method is a
    suspension point.  Transfers return the transaction hash as soon as the
    node accepts the signed transaction and never wait for inclusion.
    """

    native_symbol: str = "ETH"

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Native balance of *address* in wei."""

    @abstractmethod
    async def get_token_balance(self, token_address: str, owner: str) -> int:
        """``balanceOf(owner)`` on the token contract."""

    @abstractmethod
    async def get_token_decimals(self, token_address: str) -> int:
        """``decimals()`` of the token contract."""

    @abstractmethod
    async def send_native(self, account: LocalAccount, to_address: str, value: int) -> str:
        """Sign and submit a value transfer; return the transaction hash."""

    @abstractmethod
    async def send_token(
        self, account: LocalAccount, token_address: str, to_address: str, amount: int,
    ) -> str:
        """Sign and submit ``transfer(to, amount)``; return the transaction hash."""

    def explorer_url(self, tx_hash: str) -> str | None:
        """Block-explorer link for *tx_hash*, if the chain has one."""
        return None


class Web3Ledger(LedgerClient):
    """:class:`LedgerClient` backed by ``web3.AsyncWeb3`` over HTTP JSON-RPC.

    Parameters
    ----------
    chain:
        The network to talk to; its ``rpc_url`` is used for the provider.
    w3:
        An already-built ``AsyncWeb3`` instance (tests, custom providers).
    """

    def __init__(self, chain: Chain, w3: AsyncWeb3 | None = None) -> None:
        self.chain = chain
        self.native_symbol = chain.native_symbol
        if w3 is None:
            w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(chain.rpc_url))
            if chain.chain_id not in _NON_POA_CHAIN_IDS:
                w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self._w3 = w3
        self._chain_id: int | None = None
        # Nonce allocation and submission must not interleave.
        self._send_lock = asyncio.Lock()

    def explorer_url(self, tx_hash: str) -> str | None:
        return self.chain.tx_url(tx_hash)

    def _token(self, token_address: str):
        return self._w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI,
        )

    async def _get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await self._w3.eth.chain_id
        return self._chain_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_balance(self, address: str) -> int:
        try:
            return await self._w3.eth.get_balance(Web3.to_checksum_address(address))
        except Exception as exc:
            raise LedgerCallError(f"Failed to fetch balance of {address}: {exc}") from exc

    async def get_token_balance(self, token_address: str, owner: str) -> int:
        try:
            return await self._token(token_address).functions.balanceOf(
                Web3.to_checksum_address(owner)
            ).call()
        except Exception as exc:
            raise LedgerCallError(
                f"Failed to read balanceOf({owner}) on {token_address}: {exc}"
            ) from exc

    async def get_token_decimals(self, token_address: str) -> int:
        try:
            decimals = await self._token(token_address).functions.decimals().call()
        except Exception as exc:
            raise LedgerCallError(
                f"Could not retrieve decimals for token at {token_address}: {exc}"
            ) from exc
        if not isinstance(decimals, int):
            raise LedgerCallError(
                f"Could not retrieve decimals for token at {token_address}"
            )
        return decimals

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _apply_fees(self, tx: dict) -> None:
        """Fill fee fields: EIP-1559 first, legacy gas price as fallback."""
        w3 = self._w3
        try:
            latest = await w3.eth.get_block("latest")
            base_fee = latest.get("baseFeePerGas")
            if base_fee is None:
                raise ValueError("No baseFeePerGas")
            max_priority = Web3.to_wei(1.5, "gwei")
            tx["maxFeePerGas"] = base_fee * 2 + max_priority
            tx["maxPriorityFeePerGas"] = max_priority
            tx["gas"] = await w3.eth.estimate_gas(tx)
        except Exception:
            tx.pop("maxFeePerGas", None)
            tx.pop("maxPriorityFeePerGas", None)
            tx["gasPrice"] = await w3.eth.gas_price
            tx["gas"] = await w3.eth.estimate_gas(tx)

    async def send_native(self, account: LocalAccount, to_address: str, value: int) -> str:
        w3 = self._w3
        try:
            async with self._send_lock:
                tx: dict = {
                    "from": account.address,
                    "to": Web3.to_checksum_address(to_address),
                    "value": value,
                    "nonce": await w3.eth.get_transaction_count(account.address, "pending"),
                    "chainId": await self._get_chain_id(),
                }
                await self._apply_fees(tx)
                signed = account.sign_transaction(tx)
                tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            raise LedgerCallError(f"Failed to send {value} wei to {to_address}: {exc}") from exc

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"Submitted native transfer {tx_hex} ({value} wei -> {to_address})")
        return tx_hex

    async def send_token(
        self, account: LocalAccount, token_address: str, to_address: str, amount: int,
    ) -> str:
        w3 = self._w3
        try:
            async with self._send_lock:
                tx = await self._token(token_address).functions.transfer(
                    Web3.to_checksum_address(to_address), amount,
                ).build_transaction({
                    "from": account.address,
                    "nonce": await w3.eth.get_transaction_count(account.address, "pending"),
                    "chainId": await self._get_chain_id(),
                })
                signed = account.sign_transaction(tx)
                tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            raise LedgerCallError(
                f"Failed to transfer {amount} units of {token_address} to {to_address}: {exc}"
            ) from exc

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"Submitted token transfer {tx_hex} ({amount} units of {token_address})")
        return tx_hex
