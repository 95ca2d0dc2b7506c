"""
Test suite for currency module

Tests Money, Decimal coercion and half-up rounding to currency precision.
All monetary calculations must use Decimal precision.
"""

import pytest
from decimal import Decimal

from lending_engine.currency import (
    Money, Currency, to_decimal, round_money, round_cents
)


class TestToDecimal:
    """Test Decimal coercion"""

    def test_passes_decimal_through(self):
        value = Decimal('12.345')
        assert to_decimal(value) is value

    def test_converts_int_and_string(self):
        assert to_decimal(10) == Decimal('10')
        assert to_decimal(" 99.95 ") == Decimal('99.95')

    def test_float_goes_through_str(self):
        """Floats convert via their shortest repr, not their binary expansion"""
        assert to_decimal(0.1) == Decimal('0.1')

    @pytest.mark.parametrize("value", ["abc", None, True, "NaN", "Infinity", ""])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(ValueError, match="Cannot convert"):
            to_decimal(value)


class TestRounding:
    """Test rounding helpers"""

    def test_round_cents_half_up(self):
        assert round_cents(Decimal('2.345')) == Decimal('2.35')
        assert round_cents(Decimal('2.344')) == Decimal('2.34')
        assert round_cents(Decimal('0.005')) == Decimal('0.01')

    def test_round_money_uses_currency_precision(self):
        assert round_money(Decimal('100.7'), Currency.JPY) == Decimal('101')
        assert round_money(Decimal('100.555'), Currency.USD) == Decimal('100.56')


class TestMoney:
    """Test Money class operations"""

    def test_money_creation_rounds(self):
        money = Money(Decimal('100.555'), Currency.USD)
        assert money.amount == Decimal('100.56')
        assert money.currency == Currency.USD

    def test_money_defaults_to_usd(self):
        assert Money(Decimal('5')).currency == Currency.USD

    def test_money_coerces_strings(self):
        assert Money("25.10", Currency.EUR).amount == Decimal('25.10')

    def test_money_arithmetic(self):
        money1 = Money(Decimal('100.50'), Currency.USD)
        money2 = Money(Decimal('50.25'), Currency.USD)

        assert (money1 + money2).amount == Decimal('150.75')
        assert (money1 - money2).amount == Decimal('50.25')
        assert (money1 * Decimal('2')).amount == Decimal('201.00')
        assert (-money1).amount == Decimal('-100.50')

    def test_currency_mismatch(self):
        usd = Money(Decimal('10'), Currency.USD)
        eur = Money(Decimal('10'), Currency.EUR)

        with pytest.raises(ValueError, match="Cannot add"):
            usd + eur
        with pytest.raises(ValueError, match="Cannot compare"):
            usd < eur

    def test_comparisons_and_predicates(self):
        small = Money(Decimal('1.00'))
        large = Money(Decimal('2.00'))

        assert small < large
        assert large >= small
        assert max(small, large) == large
        assert Money(Decimal('0')).is_zero()
        assert small.is_positive()
        assert (-small).is_negative()

    def test_to_string(self):
        assert Money(Decimal('1234.5')).to_string() == "USD 1,234.50"
        assert Money(Decimal('1234'), Currency.JPY).to_string() == "JPY 1,234"
