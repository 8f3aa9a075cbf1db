from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENTS = Decimal("0.01")
CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}


def to_decimal(value: Any) -> Decimal:
    """Coerce a number to Decimal, going through ``str`` for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not numeric amounts")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def is_finite_number(value: Any) -> bool:
    try:
        return to_decimal(value).is_finite()
    except (TypeError, ValueError):
        return False


def round_money(amount: Decimal, places: Decimal = CENTS) -> Decimal:
    return to_decimal(amount).quantize(places, rounding=ROUND_HALF_UP)


def convert(amount: Decimal, rate: Decimal) -> Decimal:
    return to_decimal(amount) * to_decimal(rate)


def format_money(amount: Decimal, currency: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    value = round_money(amount)
    if symbol:
        return f"{symbol}{value}"
    return f"{value} {currency.upper()}"


def format_dual_currency(amount: Decimal, fx_rate: Decimal, quote_currency: str = "MAD") -> str:
    """Informational ``(≈ 543.53 MAD)`` hint; never an input to a total."""
    return f"(≈ {round_money(convert(amount, fx_rate))} {quote_currency})"
