"""
Test suite for currency helpers

CRITICAL: amounts must stay Decimal end to end.
"""

import pytest
from decimal import Decimal

from retail_accounting.currency import Currency, format_amount, quantize, to_decimal


class TestCurrency:
    """Test currency tags"""

    def test_codes_and_labels(self):
        """Test English and Arabic labels"""
        assert Currency.YER.code == "YER"
        assert Currency.YER.label("en") == "YER"
        assert Currency.YER.label("ar") == "ريال يمني"
        assert Currency.SAR.label("ar") == "ريال سعودي"

    def test_from_code(self):
        """Test case-insensitive lookup"""
        assert Currency.from_code("usd") == Currency.USD
        with pytest.raises(ValueError, match="Unsupported currency"):
            Currency.from_code("EUR")


class TestDecimalHelpers:
    """Test amount conversion and display"""

    def test_to_decimal(self):
        """Test loose numeric inputs"""
        assert to_decimal(None) == Decimal('0')
        assert to_decimal(0.1) == Decimal('0.1')
        assert to_decimal("  12.5 ") == Decimal('12.5')
        assert to_decimal(7) == Decimal('7')

    def test_to_decimal_rejects_non_numeric(self):
        """Test bad inputs"""
        with pytest.raises(ValueError):
            to_decimal("abc")
        with pytest.raises(ValueError):
            to_decimal(True)

    def test_quantize_half_up(self):
        """Test rounding to two places"""
        assert quantize(Decimal('2.345')) == Decimal('2.35')

    def test_format_amount(self):
        """Test thousands separators and currency label"""
        assert format_amount(Decimal('1234567.5')) == "1,234,567.50"
        assert format_amount(Decimal('-500')) == "-500.00"
        assert format_amount(Decimal('10'), Currency.SAR) == "10.00 SAR"
        assert format_amount(Decimal('10'), Currency.YER, "ar") == "10.00 ريال يمني"
