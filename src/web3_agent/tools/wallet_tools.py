"""Agent-facing wallet tools.

These are the six operations the model may call: look up a name, read
native and token balances, find a token's contract address, and submit
native or token transfers.  Transfers return the transaction hash as soon
as the node accepts it; they never wait for the transaction to be mined.

Handlers raise library errors freely - :meth:`Tool.execute` turns every
failure into a ``ToolResult`` before it reaches the dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from web3_agent.errors import ConfigurationError
from web3_agent.tools.arguments import (
    Erc20BalanceArgs,
    EthBalanceArgs,
    LookupAddressArgs,
    SendErc20Args,
    SendEthArgs,
    TokenAddressArgs,
)
from web3_agent.tools.registry import tool
from web3_agent.wallet.units import format_units, parse_units

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

    from web3_agent.directory import NameResolver
    from web3_agent.tokens import TokenTable
    from web3_agent.wallet.ledger import LedgerClient

logger = logging.getLogger("web3_agent.tools.wallet")

NATIVE_DECIMALS = 18

_NAME_HINT = (
    "**IMPORTANT: If you are given a name (like 'Alice', 'Bob'), you MUST use the "
    "`lookupAddressByName` tool first to get the address before calling this tool.**"
)


class WalletTools:
    """Tool handlers bound to one session's collaborators.

    Parameters
    ----------
    resolver:
        Name resolver for recipients and balance targets.
    tokens:
        Token symbol table.
    ledger:
        Chain client used for reads and for submitting transfers.
    signer:
        The signing account, or ``None`` for a read-only session.
    """

    def __init__(
        self,
        resolver: NameResolver,
        tokens: TokenTable,
        ledger: LedgerClient,
        signer: LocalAccount | None = None,
    ) -> None:
        self.resolver = resolver
        self.tokens = tokens
        self.ledger = ledger
        self.signer = signer

    def _require_signer(self) -> LocalAccount:
        if self.signer is None:
            raise ConfigurationError(
                "Cannot sign transactions: no signing key configured. "
                "Set PRIVATE_KEY (or a keystore) to enable transfers."
            )
        return self.signer

    def _transfer_result(self, status: str, tx_hash: str) -> dict[str, Any]:
        result: dict[str, Any] = {"status": status, "txHash": tx_hash}
        explorer = self.ledger.explorer_url(tx_hash)
        if explorer:
            result["explorerUrl"] = explorer
        return result

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @tool(
        "lookupAddressByName",
        (
            "Looks up an Ethereum address by a human-readable name (case-insensitive, "
            "fuzzy match allowed). Handles \"me\", \"myself\", \"my account\" to refer "
            "to the user's own address."
        ),
        {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "The name to look up (e.g., Alice, Bob, me, my account).",
                },
            },
            "required": ["name"],
        },
        args=LookupAddressArgs,
    )
    def lookup_address_by_name(self, args: LookupAddressArgs) -> dict[str, Any]:
        entry = self.resolver.lookup(args.name)
        return {"name": entry.name, "address": entry.address}

    @tool(
        "getTokenAddress",
        "Gets the contract address for a given ERC20 token symbol.",
        {
            "type": "object",
            "properties": {
                "token": {
                    "type": "string",
                    "description": "The symbol of the ERC20 token (e.g., USDC, WETH).",
                },
            },
            "required": ["token"],
        },
        args=TokenAddressArgs,
    )
    def get_token_address(self, args: TokenAddressArgs) -> dict[str, Any]:
        symbol = args.token.upper()
        address = self.tokens.address_of(symbol)
        logger.info(f"Address for {symbol}: {address}")
        return {"symbol": symbol, "address": address}

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    @tool(
        "getEthBalance",
        "Gets the native ETH balance of a given Ethereum address or registered name.",
        {
            "type": "object",
            "properties": {
                "addressOrName": {
                    "type": "string",
                    "description": (
                        "The Ethereum address (e.g., 0x123...abc) or registered name "
                        "(e.g., Alice, Bob, me) to check the balance of. "
                        f"{_NAME_HINT} If checking your own balance, use \"me\"."
                    ),
                },
            },
            "required": ["addressOrName"],
        },
        args=EthBalanceArgs,
    )
    async def get_eth_balance(self, args: EthBalanceArgs) -> dict[str, Any]:
        address = self.resolver.resolve(args.address_or_name)
        logger.info(f"Fetching native balance for {address} (requested: {args.address_or_name})")
        balance = await self.ledger.get_balance(address)
        return {
            "address": address,
            "balance": format_units(balance, NATIVE_DECIMALS),
            "symbol": self.ledger.native_symbol,
        }

    @tool(
        "getErc20Balance",
        "Gets the balance of a specific ERC20 token for a given Ethereum address or registered name.",
        {
            "type": "object",
            "properties": {
                "addressOrName": {
                    "type": "string",
                    "description": (
                        "The Ethereum address (e.g., 0x123...abc) or registered name "
                        f"(e.g., Alice, Bob, me) to check the balance of. {_NAME_HINT}"
                    ),
                },
                "token": {
                    "type": "string",
                    "description": "The symbol of the ERC20 token (e.g., USDC, WETH).",
                },
            },
            "required": ["addressOrName", "token"],
        },
        args=Erc20BalanceArgs,
    )
    async def get_erc20_balance(self, args: Erc20BalanceArgs) -> dict[str, Any]:
        address = self.resolver.resolve(args.address_or_name)
        symbol = args.token.upper()
        token_address = self.tokens.address_of(symbol)
        logger.info(f"Fetching {symbol} balance for {address} (requested: {args.address_or_name})")

        balance, decimals = await asyncio.gather(
            self.ledger.get_token_balance(token_address, address),
            self.ledger.get_token_decimals(token_address),
        )
        return {
            "address": address,
            "balance": format_units(balance, decimals),
            "symbol": symbol,
        }

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    @tool(
        "sendEthTransfer",
        (
            "Initiates a transfer of native ETH to another Ethereum address. "
            "**Use this ONLY for native ETH, NOT for WETH or other ERC20 tokens.**"
        ),
        {
            "type": "object",
            "properties": {
                "recipient": {
                    "type": "string",
                    "description": (
                        "The Ethereum address (e.g., 0x123...abc) or registered name of "
                        f"the recipient. {_NAME_HINT}"
                    ),
                },
                "amount": {
                    "type": "number",
                    "description": "The amount of ETH to send.",
                },
            },
            "required": ["recipient", "amount"],
        },
        args=SendEthArgs,
        terminal=True,
    )
    async def send_eth_transfer(self, args: SendEthArgs) -> dict[str, Any]:
        signer = self._require_signer()
        recipient = self.resolver.resolve(args.recipient)
        value = parse_units(args.amount, NATIVE_DECIMALS)
        logger.info(
            f"Sending {args.amount} {self.ledger.native_symbol} to {recipient} "
            f"(requested recipient: {args.recipient}, wei: {value})"
        )
        tx_hash = await self.ledger.send_native(signer, recipient, value)
        return self._transfer_result(f"{self.ledger.native_symbol} transfer submitted", tx_hash)

    @tool(
        "sendErc20Transfer",
        (
            "Initiates an ERC20 token transfer (like WETH or USDC) on the blockchain. "
            "**Use this for ERC20 tokens, NOT for native ETH.**"
        ),
        {
            "type": "object",
            "properties": {
                "recipient": {
                    "type": "string",
                    "description": (
                        "The Ethereum address (e.g., 0x123...abc) or registered name of "
                        f"the recipient. {_NAME_HINT}"
                    ),
                },
                "token": {
                    "type": "string",
                    "description": (
                        "The symbol of the ERC20 token to transfer (e.g., USDC, WETH). "
                        "**This parameter is REQUIRED for ERC20 transfers.**"
                    ),
                },
                "amount": {
                    "type": "number",
                    "description": "The amount of the token to send.",
                },
            },
            "required": ["recipient", "token", "amount"],
        },
        args=SendErc20Args,
        terminal=True,
    )
    async def send_erc20_transfer(self, args: SendErc20Args) -> dict[str, Any]:
        signer = self._require_signer()
        recipient = self.resolver.resolve(args.recipient)
        symbol = args.token.upper()
        token_address = self.tokens.address_of(symbol)
        decimals = await self.ledger.get_token_decimals(token_address)
        amount = parse_units(args.amount, decimals)
        logger.info(
            f"Transferring {args.amount} {symbol} to {recipient} "
            f"(token: {token_address}, decimals: {decimals}, units: {amount})"
        )
        tx_hash = await self.ledger.send_token(signer, token_address, recipient, amount)
        return self._transfer_result(f"{symbol} transfer submitted", tx_hash)
