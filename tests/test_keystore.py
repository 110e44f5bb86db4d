import json
from pathlib import Path

import pytest
from eth_account import Account

from conftest import HARDHAT_ADDRESS, HARDHAT_KEY
from web3_agent.config import WalletConfig
from web3_agent.errors import ConfigurationError
from web3_agent.wallet.keystore import (
    decrypt_key,
    load_address,
    load_signer,
    normalize_private_key,
    wallet_address,
)


def test_normalize_adds_prefix() -> None:
    assert normalize_private_key(HARDHAT_KEY[2:]) == HARDHAT_KEY
    assert normalize_private_key(f"  {HARDHAT_KEY}\n") == HARDHAT_KEY


@pytest.mark.parametrize("bad", ["", "0x1234", "zz" * 32, HARDHAT_KEY + "00"])
def test_normalize_rejects_malformed_keys(bad: str) -> None:
    with pytest.raises(ConfigurationError):
        normalize_private_key(bad)


def test_signer_from_private_key() -> None:
    signer = load_signer(WalletConfig(private_key=HARDHAT_KEY[2:]))
    assert signer.address == HARDHAT_ADDRESS
    assert wallet_address(WalletConfig(), signer) == HARDHAT_ADDRESS


def test_no_key_means_read_only() -> None:
    assert load_signer(WalletConfig()) is None
    assert load_signer(WalletConfig(private_key="${PRIVATE_KEY}")) is None
    assert wallet_address(WalletConfig()) is None


@pytest.fixture
def keystore(tmp_path: Path) -> Path:
    path = tmp_path / "keystore.json"
    # pbkdf2 with few iterations keeps this fast.
    encrypted = Account.encrypt(HARDHAT_KEY, "secret", kdf="pbkdf2", iterations=2)
    path.write_text(json.dumps(encrypted), encoding="utf-8")
    return path


def test_keystore_address_without_password(keystore: Path) -> None:
    assert load_address(keystore) == HARDHAT_ADDRESS
    config = WalletConfig(keystore_path=str(keystore))
    assert load_signer(config) is None
    assert wallet_address(config) == HARDHAT_ADDRESS


def test_keystore_decrypt(keystore: Path) -> None:
    signer = load_signer(WalletConfig(keystore_path=str(keystore), keystore_password="secret"))
    assert signer.address == HARDHAT_ADDRESS


def test_keystore_wrong_password(keystore: Path) -> None:
    with pytest.raises(ConfigurationError, match="Failed to decrypt"):
        decrypt_key(keystore, "wrong")


def test_missing_keystore(tmp_path: Path) -> None:
    assert load_address(tmp_path / "nope.json") is None
    with pytest.raises(ConfigurationError):
        decrypt_key(tmp_path / "nope.json", "pw")
