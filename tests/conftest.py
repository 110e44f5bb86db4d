from __future__ import annotations

from typing import Any

import pytest
from eth_account import Account

from web3_agent.core.dispatcher import ToolDispatcher
from web3_agent.directory import AddressDirectory, NameResolver
from web3_agent.errors import LedgerCallError, ModelCallError
from web3_agent.llm.base import BaseLLMProvider, LLMMessage, LLMResponse, ToolCall, ToolDefinition
from web3_agent.tokens import TokenTable
from web3_agent.tools.registry import ToolRegistry
from web3_agent.tools.wallet_tools import WalletTools
from web3_agent.wallet.ledger import LedgerClient

# Hardhat account #0.
HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
CHARLIE = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"
DAVID = "0x15d34AAf54267DB7D7c367839AAf71A00a2C6A65"
EVE = "0x9965507D1a55bcC2695C58ba16FB37d819B0A4dc"

WETH = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
USDC = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


class FakeLedger(LedgerClient):
    """In-memory ledger that records submitted transfers."""

    def __init__(self, explorer: str | None = None) -> None:
        self.balances: dict[str, int] = {}
        self.token_balances: dict[tuple[str, str], int] = {}
        self.decimals: dict[str, int] = {WETH.lower(): 18, USDC.lower(): 6}
        self.sent: list[dict[str, Any]] = []
        self.fail_with: str | None = None
        self._explorer = explorer

    def _check(self) -> None:
        if self.fail_with:
            raise LedgerCallError(self.fail_with)

    def _next_hash(self) -> str:
        return "0x" + f"{len(self.sent) + 1:064x}"

    async def get_balance(self, address: str) -> int:
        self._check()
        return self.balances.get(address.lower(), 0)

    async def get_token_balance(self, token_address: str, owner: str) -> int:
        self._check()
        return self.token_balances.get((token_address.lower(), owner.lower()), 0)

    async def get_token_decimals(self, token_address: str) -> int:
        self._check()
        return self.decimals[token_address.lower()]

    async def send_native(self, account, to_address: str, value: int) -> str:
        self._check()
        tx_hash = self._next_hash()
        self.sent.append({"kind": "native", "from": account.address, "to": to_address,
                          "value": value, "hash": tx_hash})
        return tx_hash

    async def send_token(self, account, token_address: str, to_address: str, amount: int) -> str:
        self._check()
        tx_hash = self._next_hash()
        self.sent.append({"kind": "token", "from": account.address, "token": token_address,
                          "to": to_address, "value": amount, "hash": tx_hash})
        return tx_hash

    def explorer_url(self, tx_hash: str) -> str | None:
        return f"{self._explorer}/tx/{tx_hash}" if self._explorer else None


class ScriptedProvider(BaseLLMProvider):
    """Replays canned responses and records what it was sent."""

    def __init__(self, responses: list[LLMResponse | Exception]) -> None:
        super().__init__(api_key="test", model="scripted")
        self.responses = list(responses)
        self.calls: list[list[LLMMessage]] = []
        self.tools_seen: list[list[ToolDefinition] | None] = []

    async def complete(self, messages, tools=None) -> LLMResponse:
        self.calls.append(list(messages))
        self.tools_seen.append(tools)
        if not self.responses:
            raise ModelCallError("script exhausted")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def tool_reply(*calls: tuple[str, str, dict | str], content: str = "") -> LLMResponse:
    """An LLMResponse requesting ``(id, name, arguments)`` tool calls."""
    return LLMResponse(
        content=content,
        tool_calls=[ToolCall(id=i, name=n, arguments=a) for i, n, a in calls],
    )


def text_reply(content: str) -> LLMResponse:
    return LLMResponse(content=content)


@pytest.fixture
def signer():
    return Account.from_key(HARDHAT_KEY)


@pytest.fixture
def directory() -> AddressDirectory:
    return AddressDirectory.from_mapping({
        "Alice": ALICE, "Bob": BOB, "Charlie": CHARLIE, "David": DAVID, "Eve": EVE,
    })


@pytest.fixture
def resolver(directory) -> NameResolver:
    return NameResolver(directory, self_address=HARDHAT_ADDRESS)


@pytest.fixture
def tokens() -> TokenTable:
    return TokenTable.from_mapping({"WETH": WETH, "USDC": USDC})


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def wallet_tools(resolver, tokens, ledger, signer) -> WalletTools:
    return WalletTools(resolver, tokens, ledger, signer)


@pytest.fixture
def registry(wallet_tools) -> ToolRegistry:
    return ToolRegistry.from_handlers(wallet_tools)


@pytest.fixture
def dispatcher(registry) -> ToolDispatcher:
    return ToolDispatcher(registry)
