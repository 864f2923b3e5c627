from .currency import currency_symbol, format_amount, minor_units_exponent, scale_minor_units
from .keyboard import Button, Keyboard, OutgoingMessage
from .translations import FALLBACK_LANGUAGE, LANGUAGE_NAMES, resolve_language, translate

__all__ = [
    "Button",
    "Keyboard",
    "OutgoingMessage",
    "currency_symbol",
    "format_amount",
    "minor_units_exponent",
    "scale_minor_units",
    "FALLBACK_LANGUAGE",
    "LANGUAGE_NAMES",
    "resolve_language",
    "translate",
]
