from pathlib import Path

import pytest

from web3_agent.config import (
    DEFAULT_OPENAI_MODEL,
    Web3AgentConfig,
    config_from_env,
    is_unset,
    load_config,
    resolve_config,
)
from web3_agent.errors import ConfigurationError
from web3_agent.wallet.chains import chain_from_config, get_chain


def test_defaults() -> None:
    config = Web3AgentConfig()
    assert [e.name for e in config.address_book] == ["Alice", "Bob", "Charlie", "David", "Eve"]
    assert config.tokens == []
    assert config.agent.max_turns == 15
    assert config.chain.network == "localhost"


def test_load_config_expands_env_vars(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_OPENAI_KEY", "sk-test")
    monkeypatch.delenv("UNSET_WETH", raising=False)
    path = tmp_path / "web3-agent.yaml"
    path.write_text(
        "llm:\n"
        "  openai:\n"
        "    api_key: ${TEST_OPENAI_KEY}\n"
        "    model: gpt-4o-mini\n"
        "tokens:\n"
        "  - symbol: WETH\n"
        "    address: ${UNSET_WETH}\n"
        "agent:\n"
        "  max_turns: 4\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.llm.openai.api_key == "sk-test"
    assert config.tokens[0].address == "${UNSET_WETH}"
    assert is_unset(config.tokens[0].address)
    assert config.agent.max_turns == 4


def test_config_from_env() -> None:
    config = config_from_env({
        "OPENAI_API_KEY": "sk-1",
        "PRIVATE_KEY": "abc",
        "USDC_ADDRESS": "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512",
    })
    assert config.llm.default_provider == "openai"
    assert config.llm.openai.model == DEFAULT_OPENAI_MODEL
    assert config.llm.anthropic is None
    assert config.chain.rpc_url is None
    assert config.wallet.private_key == "abc"
    assert [(t.symbol, t.address) for t in config.tokens] == [
        ("USDC", "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"),
    ]
    chain = chain_from_config(config.chain.network, config.chain.rpc_url, config.chain.chain_id)
    assert chain.rpc_url == "http://127.0.0.1:8545/"


def test_config_from_env_uses_network_rpc_without_override() -> None:
    config = config_from_env({"CHAIN": "sepolia"})
    chain = chain_from_config(config.chain.network, config.chain.rpc_url, config.chain.chain_id)
    assert chain.name == "sepolia"
    assert chain.chain_id == 11155111
    assert chain.rpc_url == "https://rpc.sepolia.org"


def test_config_from_env_anthropic() -> None:
    config = config_from_env({
        "LLM_PROVIDER": "Anthropic",
        "ANTHROPIC_API_KEY": "a-key",
        "ANTHROPIC_MODEL": "claude-x",
        "RPC_URL": "http://node:8545",
    })
    assert config.llm.default_provider == "anthropic"
    assert config.llm.anthropic.model == "claude-x"
    assert config.llm.openai is None
    assert config.chain.rpc_url == "http://node:8545"


def test_resolve_config_prefers_cwd_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "web3-agent.yaml").write_text("agent:\n  max_turns: 2\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert resolve_config().agent.max_turns == 2


def test_resolve_config_falls_back_to_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RPC_URL", "http://env-node:8545")
    assert resolve_config().chain.rpc_url == "http://env-node:8545"


def test_resolve_config_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        resolve_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize("value, expected", [("", True), ("  ", True), ("${X}", True), ("x", False), (None, True)])
def test_is_unset(value, expected: bool) -> None:
    assert is_unset(value) is expected


def test_chain_overrides() -> None:
    chain = chain_from_config("localhost", "http://other:8545", 1337)
    assert chain.rpc_url == "http://other:8545"
    assert chain.chain_id == 1337
    assert chain.tx_url("0xabc") is None
    assert get_chain("sepolia").tx_url("0xabc") == "https://sepolia.etherscan.io/tx/0xabc"


def test_unknown_network() -> None:
    with pytest.raises(ConfigurationError, match="Unknown chain"):
        chain_from_config("nope")
