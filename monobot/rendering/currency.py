from __future__ import annotations

from decimal import Decimal

CURRENCY_SYMBOLS: dict[int, str] = {
    980: "₴",
    840: "$",
    978: "€",
    826: "£",
    985: "zł",
    203: "Kč",
    392: "¥",
    756: "CHF",
}

# ISO 4217 minor units for currencies that do not use cents.
ZERO_DECIMAL_CURRENCIES = {392, 410}


def currency_symbol(code: int) -> str:
    return CURRENCY_SYMBOLS.get(code, str(code))


def minor_units_exponent(code: int) -> int:
    return 0 if code in ZERO_DECIMAL_CURRENCIES else 2


def scale_minor_units(amount: int, code: int) -> Decimal:
    """Convert an integer amount in minor units into a major-unit ``Decimal``."""
    return Decimal(amount).scaleb(-minor_units_exponent(code))


def format_amount(amount: int, code: int) -> str:
    places = minor_units_exponent(code)
    value = scale_minor_units(amount, code)
    return f"{value:,.{places}f} {currency_symbol(code)}"
