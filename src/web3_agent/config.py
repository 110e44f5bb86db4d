"""Configuration system for web3-agent.

Loads the agent config from a YAML file (``web3-agent.yaml`` by default),
supports environment variable expansion, and can alternatively build the
whole configuration from environment variables alone
(``OPENAI_API_KEY``, ``PRIVATE_KEY``, ``RPC_URL``, ...).
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


def is_unset(value: str | None) -> bool:
    """True for empty values and for placeholders that were never expanded."""
    if not value or not value.strip():
        return True
    return bool(_ENV_VAR_RE.fullmatch(value.strip()))


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class LLMProviderConfig(BaseModel):
    """Configuration for a single LLM provider (OpenAI, Anthropic, etc.)."""

    api_key: str = ""
    model: str = ""
    base_url: Optional[str] = None  # For OpenAI-compatible endpoints
    max_tokens: int = 4096


class LLMConfig(BaseModel):
    """Top-level LLM configuration that can hold multiple providers."""

    default_provider: str = "openai"
    openai: Optional[LLMProviderConfig] = None
    anthropic: Optional[LLMProviderConfig] = None


class ChainConfig(BaseModel):
    """Which network the wallet talks to.

    ``network`` picks a known chain (see :mod:`web3_agent.wallet.chains`);
    ``rpc_url`` and ``chain_id`` override its defaults.
    """

    network: str = "localhost"
    rpc_url: Optional[str] = None
    chain_id: Optional[int] = None


class WalletConfig(BaseModel):
    """Signing identity.  Either a raw private key or an encrypted keystore."""

    private_key: str = ""            # ${PRIVATE_KEY}
    keystore_path: Optional[str] = None
    keystore_password: str = ""      # ${KEYSTORE_PASSWORD}


class AddressBookEntry(BaseModel):
    """A display name and the address it stands for."""

    name: str
    address: str


class TokenConfig(BaseModel):
    """An ERC-20 token symbol and its contract address."""

    symbol: str
    address: str


class AgentSettings(BaseModel):
    """Limits for the conversation loop."""

    max_turns: int = 15             # model round-trips per user utterance
    system_prompt_extra: str = ""   # appended to the built-in system prompt


class ServerConfig(BaseModel):
    """HTTP API settings."""

    host: str = "127.0.0.1"
    port: int = 8000


# Hardhat's well-known development accounts #1-#5.
DEFAULT_ADDRESS_BOOK: list[AddressBookEntry] = [
    AddressBookEntry(name="Alice", address="0x70997970C51812dc3A010C7d01b50e0d17dc79C8"),
    AddressBookEntry(name="Bob", address="0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"),
    AddressBookEntry(name="Charlie", address="0x90F79bf6EB2c4f870365E785982E1f101E93b906"),
    AddressBookEntry(name="David", address="0x15d34AAf54267DB7D7c367839AAf71A00a2C6A65"),
    AddressBookEntry(name="Eve", address="0x9965507D1a55bcC2695C58ba16FB37d819B0A4dc"),
]


class Web3AgentConfig(BaseModel):
    """Root configuration object."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    address_book: list[AddressBookEntry] = Field(
        default_factory=lambda: [e.model_copy() for e in DEFAULT_ADDRESS_BOOK]
    )
    tokens: list[TokenConfig] = Field(default_factory=list)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_NAME = "web3-agent.yaml"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"


def load_config(path: Path) -> Web3AgentConfig:
    """Load and validate a configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation.
    """
    raw_text = path.read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return Web3AgentConfig.model_validate(expanded)


def config_from_env(environ: dict[str, str] | None = None) -> Web3AgentConfig:
    """Build a configuration from environment variables alone.

    Token entries are only added for the variables that are set.
    """
    env = os.environ if environ is None else environ

    llm = LLMConfig(default_provider=env.get("LLM_PROVIDER", "openai").strip().lower() or "openai")
    if env.get("OPENAI_API_KEY") or env.get("OPENAI_BASE_URL"):
        llm.openai = LLMProviderConfig(
            api_key=env.get("OPENAI_API_KEY", ""),
            model=env.get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            base_url=env.get("OPENAI_BASE_URL") or None,
        )
    if env.get("ANTHROPIC_API_KEY"):
        llm.anthropic = LLMProviderConfig(
            api_key=env["ANTHROPIC_API_KEY"],
            model=env.get("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
        )

    tokens = [
        TokenConfig(symbol=symbol, address=env[var])
        for symbol, var in (("WETH", "WETH_ADDRESS"), ("USDC", "USDC_ADDRESS"))
        if env.get(var)
    ]

    return Web3AgentConfig(
        llm=llm,
        chain=ChainConfig(
            network=env.get("CHAIN", "localhost"),
            rpc_url=env.get("RPC_URL") or None,
        ),
        wallet=WalletConfig(
            private_key=env.get("PRIVATE_KEY", ""),
            keystore_path=env.get("KEYSTORE_PATH") or None,
            keystore_password=env.get("KEYSTORE_PASSWORD", ""),
        ),
        tokens=tokens,
    )


def resolve_config(path: Path | None = None) -> Web3AgentConfig:
    """Load *path* if given, else ``./web3-agent.yaml`` if present, else the environment."""
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"No configuration file at {path}")
        return load_config(path)
    default_path = Path.cwd() / DEFAULT_CONFIG_NAME
    if default_path.exists():
        return load_config(default_path)
    return config_from_env()
