"""Chain definitions for supported EVM networks."""

from __future__ import annotations

from dataclasses import dataclass

from web3_agent.errors import ConfigurationError


@dataclass(frozen=True)
class Chain:
    """An EVM-compatible blockchain network."""

    name: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    explorer_url: str | None = None

    def tx_url(self, tx_hash: str) -> str | None:
        """Block-explorer link for *tx_hash*, or ``None`` for local chains."""
        if not self.explorer_url:
            return None
        return f"{self.explorer_url}/tx/{tx_hash}"


CHAINS: dict[str, Chain] = {
    "localhost": Chain(
        name="localhost",
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545/",
        native_symbol="ETH",
    ),
    "ethereum": Chain(
        name="ethereum",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
    ),
    "sepolia": Chain(
        name="sepolia",
        chain_id=11155111,
        rpc_url="https://rpc.sepolia.org",
        native_symbol="ETH",
        explorer_url="https://sepolia.etherscan.io",
    ),
    "base": Chain(
        name="base",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        native_symbol="ETH",
        explorer_url="https://basescan.org",
    ),
    "arbitrum": Chain(
        name="arbitrum",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        native_symbol="ETH",
        explorer_url="https://arbiscan.io",
    ),
}


def get_chain(name: str) -> Chain:
    """Get a chain by name. Raises ``KeyError`` if not found."""
    if name not in CHAINS:
        raise KeyError(
            f"Unknown chain '{name}'. Available: {list_chain_names()}"
        )
    return CHAINS[name]


def list_chain_names() -> list[str]:
    """Return the names of all supported chains."""
    return list(CHAINS.keys())


def chain_from_config(network: str, rpc_url: str | None = None, chain_id: int | None = None) -> Chain:
    """Look up *network* and apply the optional RPC URL / chain id overrides.

    Raises ``ConfigurationError`` for an unknown network name.
    """
    try:
        base = get_chain(network)
    except KeyError as e:
        raise ConfigurationError(e.args[0]) from e
    return Chain(
        name=base.name,
        chain_id=chain_id if chain_id is not None else base.chain_id,
        rpc_url=rpc_url or base.rpc_url,
        native_symbol=base.native_symbol,
        explorer_url=base.explorer_url,
    )
