"""Exception hierarchy for web3-agent.

Tool handlers raise these internally; the dispatcher converts them into
``ToolResult`` failures so that none of them escapes a tool call.  Only
:class:`ModelCallError` is ever surfaced to the conversation loop.
"""

from __future__ import annotations


class Web3AgentError(Exception):
    """Base class for all errors raised by web3-agent."""


class UnresolvedNameError(Web3AgentError):
    """A name, self-reference or address literal could not be resolved."""

    def __init__(self, reference: str, reason: str | None = None):
        self.reference = reference
        message = reason or f"Unknown recipient/name or invalid address: {reference}"
        super().__init__(message)


class InvalidAddressConfiguredError(Web3AgentError):
    """An address book or token table entry holds a malformed address."""


class UnknownTokenError(Web3AgentError):
    """A token symbol is not in the token table (or maps to a bad address)."""

    def __init__(self, symbol: str, reason: str | None = None):
        self.symbol = symbol
        message = reason or (
            f"Token address for symbol '{symbol}' not found. "
            f"Add it to the token table in the configuration."
        )
        super().__init__(message)


class ArgumentParseError(Web3AgentError):
    """A tool call carried malformed or missing arguments."""


class LedgerCallError(Web3AgentError):
    """A JSON-RPC or contract call failed."""


class ModelCallError(Web3AgentError):
    """The language model completion request failed."""


class ConfigurationError(Web3AgentError):
    """Required configuration (signing key, API key, ...) is missing or invalid."""
