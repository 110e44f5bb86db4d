from decimal import Decimal

import pytest

from web3_agent.errors import ArgumentParseError
from web3_agent.tools.arguments import (
    EthBalanceArgs,
    LookupAddressArgs,
    SendErc20Args,
    SendEthArgs,
    parse_arguments,
)


def test_balance_accepts_both_argument_names() -> None:
    a = parse_arguments(EthBalanceArgs, "getEthBalance", {"addressOrName": "Bob"})
    b = parse_arguments(EthBalanceArgs, "getEthBalance", {"address": "Bob"})
    assert a.address_or_name == b.address_or_name == "Bob"


def test_strings_are_trimmed_and_extras_ignored() -> None:
    args = parse_arguments(LookupAddressArgs, "lookupAddressByName", {"name": "  Eve ", "x": 1})
    assert args.name == "Eve"


@pytest.mark.parametrize("amount", [0.01, "0.01", Decimal("0.01")])
def test_amount_is_decimal(amount) -> None:
    args = parse_arguments(SendEthArgs, "sendEthTransfer", {"recipient": "Bob", "amount": amount})
    assert args.amount == Decimal("0.01")


@pytest.mark.parametrize("amount", [0, -1, "abc", None])
def test_invalid_amounts(amount) -> None:
    with pytest.raises(ArgumentParseError) as exc_info:
        parse_arguments(SendEthArgs, "sendEthTransfer", {"recipient": "Bob", "amount": amount})
    assert "sendEthTransfer" in str(exc_info.value)


def test_missing_required_field() -> None:
    with pytest.raises(ArgumentParseError) as exc_info:
        parse_arguments(SendErc20Args, "sendErc20Transfer", {"recipient": "Bob", "amount": 1})
    assert "token" in str(exc_info.value)
