"""web3-agent - drive an Ethereum wallet with natural-language instructions."""

__version__ = "0.3.0"
