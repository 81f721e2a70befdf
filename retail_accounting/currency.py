"""
Currency Support Module

Currency tags carried by tenants and bonds, plus Decimal helpers for
amount handling and display. NEVER uses float for monetary values.
No exchange-rate conversion exists: every amount in a book is treated
as the same currency.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from enum import Enum
from typing import Any, Union

# Set global decimal context for financial precision
getcontext().prec = 28


class Currency(Enum):
    """ISO 4217 currency codes with precision and display labels"""
    YER = ("YER", 2, "ريال يمني")  # Yemeni Rial
    SAR = ("SAR", 2, "ريال سعودي")  # Saudi Riyal
    USD = ("USD", 2, "دولار")  # US Dollar

    def __init__(self, code: str, precision: int, arabic_label: str):
        self.code = code
        self.precision = precision
        self.arabic_label = arabic_label

    def label(self, language: str = "en") -> str:
        """Display label for the given UI language"""
        if language == "ar":
            return self.arabic_label
        return self.code

    @classmethod
    def from_code(cls, code: str) -> 'Currency':
        """Look up a currency by ISO code (case-insensitive)"""
        try:
            return cls[code.upper()]
        except KeyError:
            raise ValueError(f"Unsupported currency: {code}")


ZERO = Decimal('0')


def to_decimal(value: Union[Decimal, int, str, float, None]) -> Decimal:
    """
    Convert a loosely typed numeric value to Decimal.

    Floats go through str() so 0.1 stays 0.1 rather than its binary
    expansion. None becomes zero.

    Raises:
        ValueError: If the value is not numeric
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a numeric amount: {value!r}")


def quantize(amount: Decimal, currency: Currency = Currency.USD) -> Decimal:
    """Round to the currency precision using banker-safe HALF_UP"""
    return amount.quantize(Decimal('0.1') ** currency.precision, rounding=ROUND_HALF_UP)


def format_amount(amount: Any, currency: Currency = None, language: str = "en") -> str:
    """
    Format an amount with thousands separators for display.

    Args:
        amount: Decimal (or numeric) amount
        currency: Optional currency; when given, its label is appended
        language: UI language for the currency label
    """
    value = to_decimal(amount)
    precision = currency.precision if currency else 2
    text = f"{quantize(value, currency or Currency.USD):,.{precision}f}"
    if currency:
        return f"{text} {currency.label(language)}"
    return text
