"""Wire a ready-to-use :class:`Agent` from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from eth_account.signers.local import LocalAccount

from web3_agent.config import Web3AgentConfig
from web3_agent.core.agent import Agent
from web3_agent.core.dispatcher import ToolDispatcher
from web3_agent.core.prompt import build_system_prompt
from web3_agent.core.turn import AgentTurnExecutor
from web3_agent.directory import AddressDirectory, AddressDirectoryEntry, NameResolver
from web3_agent.llm.base import BaseLLMProvider
from web3_agent.llm.router import LLMRouter
from web3_agent.tokens import TokenTable
from web3_agent.tools.registry import ToolRegistry
from web3_agent.tools.wallet_tools import WalletTools
from web3_agent.wallet.chains import chain_from_config
from web3_agent.wallet.keystore import load_signer, wallet_address
from web3_agent.wallet.ledger import LedgerClient, Web3Ledger

logger = logging.getLogger("web3_agent.factory")


@dataclass
class AgentComponents:
    """Everything :func:`build_agent` created, for callers that need the parts."""

    agent: Agent
    registry: ToolRegistry
    resolver: NameResolver
    tokens: TokenTable
    ledger: LedgerClient
    signer: LocalAccount | None
    self_address: str | None


def build_components(
    config: Web3AgentConfig,
    *,
    provider: BaseLLMProvider | None = None,
    ledger: LedgerClient | None = None,
) -> AgentComponents:
    """Construct every collaborator explicitly and inject them.

    *provider* and *ledger* override the configured ones (tests, custom
    transports).

    Raises
    ------
    ConfigurationError
        For an invalid private key, an undecryptable keystore, or an LLM
        provider without credentials.
    """
    signer = load_signer(config.wallet)
    self_address = wallet_address(config.wallet, signer)
    if signer is None:
        logger.warning(
            "No signing key configured: balance checks and lookups work, transfers will fail."
        )

    if ledger is None:
        chain = chain_from_config(config.chain.network, config.chain.rpc_url, config.chain.chain_id)
        ledger = Web3Ledger(chain)
        logger.info(f"Using {chain.name} via {chain.rpc_url}")

    directory = AddressDirectory(
        AddressDirectoryEntry(name=e.name, address=e.address) for e in config.address_book
    )
    resolver = NameResolver(directory, self_address=self_address)
    tokens = TokenTable((t.symbol, t.address) for t in config.tokens)

    registry = ToolRegistry.from_handlers(WalletTools(resolver, tokens, ledger, signer))

    if provider is None:
        provider = LLMRouter(config.llm).get_provider()

    executor = AgentTurnExecutor(provider, ToolDispatcher(registry), registry.definitions())
    system_prompt = build_system_prompt(
        self_address,
        native_symbol=ledger.native_symbol,
        token_symbols=tokens.symbols(),
        extra=config.agent.system_prompt_extra,
    )
    agent = Agent(executor, system_prompt, max_turns=config.agent.max_turns)

    return AgentComponents(
        agent=agent,
        registry=registry,
        resolver=resolver,
        tokens=tokens,
        ledger=ledger,
        signer=signer,
        self_address=self_address,
    )


def build_agent(
    config: Web3AgentConfig,
    *,
    provider: BaseLLMProvider | None = None,
    ledger: LedgerClient | None = None,
) -> Agent:
    """Shortcut for ``build_components(...).agent``."""
    return build_components(config, provider=provider, ledger=ledger).agent
