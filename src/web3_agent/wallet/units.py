"""Conversion between human decimal amounts and integer minimal units."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from web3_agent.errors import ArgumentParseError


def to_decimal(amount: str | int | float | Decimal) -> Decimal:
    """Coerce a user/model supplied amount to ``Decimal`` without float noise."""
    if isinstance(amount, bool):
        raise ArgumentParseError(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ArgumentParseError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ArgumentParseError(f"Invalid amount: {amount!r}")
    return value


def parse_units(amount: str | int | float | Decimal, decimals: int) -> int:
    """Scale a whole-unit amount to minimal units, e.g. ``0.01`` with 18 decimals.

    Raises ``ArgumentParseError`` for negative amounts or for more
    fractional digits than the asset supports.
    """
    value = to_decimal(amount)
    if value < 0:
        raise ArgumentParseError(f"Amount must not be negative: {amount}")
    # Enough precision that scaling never rounds the coefficient.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + decimals)
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ArgumentParseError(
                f"Amount {amount} has more than {decimals} decimal places"
            )
    return int(scaled)


def format_units(value: int, decimals: int) -> str:
    """Render minimal units as a decimal string (``1000000`` / 6 -> ``"1.0"``)."""
    negative = value < 0
    digits = str(abs(value)).rjust(decimals + 1, "0")
    whole = digits[: len(digits) - decimals] if decimals else digits
    fraction = digits[len(digits) - decimals:].rstrip("0") if decimals else ""
    text = f"{whole}.{fraction or '0'}"
    return f"-{text}" if negative else text
