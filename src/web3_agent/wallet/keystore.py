"""Signing identity loading using eth-account.

The agent signs with a single pre-configured account, taken either from a
raw private key or from an encrypted keystore JSON file.  A keystore's
address can be read without the password, so read-only operations keep
working when only the keystore (and no password) is available.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from web3_agent.config import WalletConfig, is_unset
from web3_agent.errors import ConfigurationError

_HEX_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def normalize_private_key(raw: str) -> str:
    """Return *raw* as a ``0x``-prefixed 64-hex-character key.

    Raises
    ------
    ConfigurationError
        If the key is not exactly 32 bytes of hex.
    """
    key = raw.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    if not _HEX_KEY_RE.match(key):
        raise ConfigurationError(
            "Invalid private key. Ensure it is a 64-character hex string, "
            "optionally prefixed with 0x."
        )
    return key


def load_address(keystore_path: Path) -> str | None:
    """Read the wallet address from a keystore file without decrypting.

    Returns ``None`` if no keystore file exists.
    """
    if not keystore_path.exists():
        return None

    data = json.loads(keystore_path.read_text(encoding="utf-8"))
    raw_address = data.get("address", "")
    if not raw_address:
        return None
    if not raw_address.startswith("0x"):
        raw_address = "0x" + raw_address
    return Web3.to_checksum_address(raw_address)


def decrypt_key(keystore_path: Path, password: str) -> bytes:
    """Decrypt the private key from the keystore.

    Parameters
    ----------
    keystore_path:
        Path of the keystore JSON file.
    password:
        Password that was used to encrypt the key.

    Returns
    -------
    bytes
        The raw 32-byte private key.

    Raises
    ------
    ConfigurationError
        If no keystore file exists or the password is incorrect.
    """
    if not keystore_path.exists():
        raise ConfigurationError(f"No keystore found at {keystore_path}")

    data = json.loads(keystore_path.read_text(encoding="utf-8"))
    try:
        return Account.decrypt(data, password)
    except Exception as exc:
        raise ConfigurationError(f"Failed to decrypt keystore: {exc}") from exc


def load_signer(wallet: WalletConfig) -> LocalAccount | None:
    """Build the signing account from the wallet configuration.

    A raw private key wins over a keystore.  Returns ``None`` when neither
    a key nor a keystore password is configured; the agent then runs
    read-only.
    """
    if not is_unset(wallet.private_key):
        return Account.from_key(normalize_private_key(wallet.private_key))

    if wallet.keystore_path and not is_unset(wallet.keystore_password):
        key = decrypt_key(Path(wallet.keystore_path), wallet.keystore_password)
        return Account.from_key(key)

    return None


def wallet_address(wallet: WalletConfig, signer: LocalAccount | None = None) -> str | None:
    """The session's own address: the signer's, else the keystore's, else ``None``."""
    if signer is not None:
        return signer.address
    if wallet.keystore_path:
        return load_address(Path(wallet.keystore_path))
    return None
