"""Address directory and name resolution.

Turns free-text references such as ``"Alice"``, ``"Bob's address"``,
``"my account"`` or an ``0x...`` literal into an address.  Two paths:

* :meth:`NameResolver.resolve` - strict; used by the balance and transfer
  tools.  Self-reference, exact directory name, or address literal.
* :meth:`NameResolver.lookup` - the strict path plus a tiered fuzzy match,
  used only by the ``lookupAddressByName`` tool.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from web3_agent.errors import InvalidAddressConfiguredError, UnresolvedNameError

logger = logging.getLogger("web3_agent.directory")

SELF_REFERENCES: frozenset[str] = frozenset({"me", "myself", "my account", "my address", "i"})

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_POSSESSIVE_RE = re.compile(r"['`‘’]s\b")
_TRAILING_NOUN_RE = re.compile(r"\s*\b(address|account)$")

# Fuzzy tiers, best first.
_TIER_EXACT = 4
_TIER_PREFIX = 3
_TIER_CONTAINS = 2
_TIER_EDIT = 1
_MAX_EDIT_DISTANCE = 2


def is_hex_address(value: str) -> bool:
    """Syntactic check: ``0x`` followed by exactly 40 hex digits."""
    return bool(_ADDRESS_RE.match(value))


def normalize_reference(reference: str) -> str:
    """Trim, lower-case, drop possessives and a trailing "address"/"account"."""
    normalized = reference.strip().lower()
    normalized = _POSSESSIVE_RE.sub("", normalized)
    normalized = _TRAILING_NOUN_RE.sub("", normalized)
    return normalized.strip()


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


@dataclass(frozen=True)
class AddressDirectoryEntry:
    """A display name and the address it stands for."""

    name: str
    address: str


class AddressDirectory:
    """Read-only, ordered collection of :class:`AddressDirectoryEntry`.

    Declaration order matters: it breaks ties between equally good fuzzy
    matches.
    """

    def __init__(self, entries: Iterable[AddressDirectoryEntry]) -> None:
        self._entries: tuple[AddressDirectoryEntry, ...] = tuple(entries)

    @classmethod
    def from_mapping(cls, mapping: dict[str, str]) -> AddressDirectory:
        return cls(AddressDirectoryEntry(name=n, address=a) for n, a in mapping.items())

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def find_exact(self, name: str) -> AddressDirectoryEntry | None:
        """Case-insensitive exact lookup by display name."""
        wanted = name.lower()
        for entry in self._entries:
            if entry.name.lower() == wanted:
                return entry
        return None


class NameResolver:
    """Resolves references to addresses against a directory.

    Parameters
    ----------
    directory:
        The session's address directory.
    self_address:
        The session's own address.  ``None`` when no wallet is configured,
        in which case self-references fail to resolve.
    """

    def __init__(self, directory: AddressDirectory, self_address: str | None = None) -> None:
        self.directory = directory
        self.self_address = self_address

    def _self(self, reference: str) -> str:
        if self.self_address is None:
            raise UnresolvedNameError(
                reference,
                f"Cannot resolve '{reference}': no wallet address is configured for this session.",
            )
        logger.info(f'Resolved self-reference "{reference}" to address: {self.self_address}')
        return self.self_address

    def _checked(self, entry: AddressDirectoryEntry, reference: str) -> str:
        if not is_hex_address(entry.address):
            raise InvalidAddressConfiguredError(
                f'Invalid address configured for name "{entry.name}" '
                f"in address book: {entry.address}"
            )
        logger.info(f'Resolved name "{reference}" to address: {entry.address}')
        return entry.address

    def _find_entry(self, lowered: str, normalized: str) -> AddressDirectoryEntry | None:
        # The raw name first: display names may themselves end in "account".
        if lowered:
            entry = self.directory.find_exact(lowered)
            if entry is not None:
                return entry
        if normalized and normalized != lowered:
            return self.directory.find_exact(normalized)
        return None

    def _resolve_strict(self, reference: str) -> tuple[str | None, AddressDirectoryEntry | None, str]:
        """Steps shared by both paths.

        Returns ``(address or None, matched directory entry or None, normalized)``.
        """
        trimmed = reference.strip()
        lowered = trimmed.lower()
        normalized = normalize_reference(reference)

        if lowered in SELF_REFERENCES or normalized in SELF_REFERENCES:
            return self._self(reference), None, normalized

        entry = self._find_entry(lowered, normalized)
        if entry is not None:
            return self._checked(entry, reference), entry, normalized

        if is_hex_address(trimmed):
            return trimmed, None, normalized
        if is_hex_address(normalized):
            return normalized, None, normalized

        return None, None, normalized

    def resolve(self, reference: str) -> str:
        """Resolve without fuzzy matching.

        Raises
        ------
        UnresolvedNameError
            If *reference* is not a self-reference, a directory name, or an
            address literal.
        InvalidAddressConfiguredError
            If the matching directory entry holds a malformed address.
        """
        address, _, _ = self._resolve_strict(reference)
        if address is None:
            raise UnresolvedNameError(reference)
        return address

    def lookup(self, reference: str) -> AddressDirectoryEntry:
        """Resolve with the fuzzy fallback; returns the matched entry.

        Self-references come back as an entry named ``"me"``; address
        literals as an entry named after the literal itself.
        """
        trimmed = reference.strip()
        lowered = trimmed.lower()
        if lowered in SELF_REFERENCES or normalize_reference(reference) in SELF_REFERENCES:
            return AddressDirectoryEntry(name="me", address=self._self(reference))

        address, entry, normalized = self._resolve_strict(reference)
        if address is not None:
            return entry or AddressDirectoryEntry(name=trimmed, address=address)

        match = self._fuzzy_match(normalized)
        if match is None:
            raise UnresolvedNameError(reference, f"Unknown name: {reference}")
        logger.info(f'Fuzzy-matched "{reference}" to directory entry "{match.name}"')
        return AddressDirectoryEntry(name=match.name, address=self._checked(match, reference))

    def _fuzzy_match(self, needle: str) -> AddressDirectoryEntry | None:
        if not needle:
            return None
        best: AddressDirectoryEntry | None = None
        best_tier = 0
        for entry in self.directory:
            candidate = entry.name.lower()
            if candidate == needle:
                tier = _TIER_EXACT
            elif candidate.startswith(needle):
                tier = _TIER_PREFIX
            elif needle in candidate:
                tier = _TIER_CONTAINS
            elif levenshtein(candidate, needle) <= _MAX_EDIT_DISTANCE:
                tier = _TIER_EDIT
            else:
                continue
            # Strictly greater: the first-declared entry wins within a tier.
            if tier > best_tier:
                best, best_tier = entry, tier
        return best
