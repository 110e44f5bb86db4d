"""Static token-symbol to contract-address table."""

from __future__ import annotations

from typing import Iterable

from web3_agent.directory import is_hex_address
from web3_agent.errors import UnknownTokenError


class TokenTable:
    """Upper-cased symbol -> contract address.  Immutable once built."""

    def __init__(self, entries: Iterable[tuple[str, str]] = ()) -> None:
        self._addresses: dict[str, str] = {
            symbol.strip().upper(): address.strip() for symbol, address in entries
        }

    @classmethod
    def from_mapping(cls, mapping: dict[str, str]) -> TokenTable:
        return cls(mapping.items())

    def symbols(self) -> list[str]:
        return list(self._addresses)

    def __contains__(self, symbol: str) -> bool:
        return symbol.strip().upper() in self._addresses

    def address_of(self, symbol: str) -> str:
        """Contract address for *symbol* (case-insensitive).

        Raises ``UnknownTokenError`` if the symbol is unmapped or its
        configured address is not a valid address.
        """
        key = symbol.strip().upper()
        address = self._addresses.get(key)
        if not address:
            raise UnknownTokenError(symbol)
        if not is_hex_address(address):
            raise UnknownTokenError(
                symbol, f"Invalid address configured for token '{symbol}': {address}"
            )
        return address
