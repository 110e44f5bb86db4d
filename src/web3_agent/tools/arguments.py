"""Typed argument records for each wallet tool.

Models send tool arguments as free-form JSON.  Each tool declares one of
these pydantic models; :func:`parse_arguments` turns the decoded payload
into an instance or raises :class:`ArgumentParseError`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from web3_agent.errors import ArgumentParseError
from web3_agent.wallet.units import to_decimal

ArgsT = TypeVar("ArgsT", bound=BaseModel)


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)


class _AmountMixin(BaseModel):
    amount: Decimal

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        try:
            amount = to_decimal(value)
        except ArgumentParseError as exc:
            raise ValueError(str(exc)) from exc
        if amount <= 0:
            raise ValueError("amount must be greater than zero")
        return amount


class LookupAddressArgs(ToolArguments):
    name: str = Field(min_length=1)


class EthBalanceArgs(ToolArguments):
    address_or_name: str = Field(
        min_length=1, validation_alias=AliasChoices("addressOrName", "address"),
    )


class Erc20BalanceArgs(ToolArguments):
    address_or_name: str = Field(
        min_length=1, validation_alias=AliasChoices("addressOrName", "address"),
    )
    token: str = Field(min_length=1)


class SendEthArgs(ToolArguments, _AmountMixin):
    recipient: str = Field(min_length=1)


class SendErc20Args(ToolArguments, _AmountMixin):
    recipient: str = Field(min_length=1)
    token: str = Field(min_length=1)


class TokenAddressArgs(ToolArguments):
    token: str = Field(min_length=1)


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def parse_arguments(model: type[ArgsT], tool_name: str, payload: dict[str, Any]) -> ArgsT:
    """Validate *payload* against *model*."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ArgumentParseError(
            f"Invalid arguments for {tool_name}: {_describe(exc)}"
        ) from exc
