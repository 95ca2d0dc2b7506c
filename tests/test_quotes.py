"""
Test suite for quotes module

Tests fee composition, installment counts and the invariant that the
installments of a quote sum exactly to its total repayable.
"""

import pytest
from decimal import Decimal

from lending_engine.currency import Currency
from lending_engine.exceptions import InvalidLoanParameters
from lending_engine.loans import LoanTerms, RateType, PaymentFrequency
from lending_engine.quotes import calculate_processing_fee, number_of_installments, quote
from lending_engine.rates import FixedInterest, DecliningInterest


class TestProcessingFee:
    """Test processing fee calculation"""

    def test_percentage_of_principal(self):
        assert calculate_processing_fee(Decimal('5000'), Decimal('2')) == Decimal('100.00')

    def test_rounds_half_up(self):
        assert calculate_processing_fee(Decimal('333'), Decimal('1.5')) == Decimal('5.00')
        assert calculate_processing_fee(Decimal('1001'), Decimal('0.05')) == Decimal('0.50')

    def test_negative_fee(self):
        with pytest.raises(InvalidLoanParameters, match="cannot be negative"):
            calculate_processing_fee(Decimal('1000'), Decimal('-1'))


class TestNumberOfInstallments:
    """Test installment counts per frequency"""

    @pytest.mark.parametrize("term_days, frequency, expected", [
        (30, "daily", 30),
        (1, "daily", 1),
        (7, "weekly", 1),
        (8, "weekly", 2),
        (28, "weekly", 4),
        (30, "monthly", 1),
        (31, "monthly", 2),
        (90, "monthly", 3),
        (365, "monthly", 13),
    ])
    def test_counts(self, term_days, frequency, expected):
        assert number_of_installments(term_days, frequency) == expected

    def test_invalid_term(self):
        with pytest.raises(InvalidLoanParameters):
            number_of_installments(0, PaymentFrequency.MONTHLY)


class TestQuote:
    """Test quote composition"""

    def test_fixed_reference_quote(self):
        loan_quote = quote(LoanTerms(
            principal=Decimal('10000'),
            annual_rate_percent=Decimal('12'),
            term_days=365,
            rate_type=RateType.FIXED
        ))

        assert loan_quote.total_interest == Decimal('1200.00')
        assert loan_quote.total_fees == Decimal('0.00')
        assert loan_quote.total_repayable == Decimal('11200.00')
        assert loan_quote.number_of_installments == 13
        assert loan_quote.installment_amount == Decimal('861.54')
        assert loan_quote.final_installment_amount == Decimal('861.52')
        assert isinstance(loan_quote.interest_detail, FixedInterest)

    def test_fees_included(self):
        loan_quote = quote(LoanTerms(
            principal=Decimal('5000'),
            annual_rate_percent=Decimal('10'),
            term_days=30,
            rate_type=RateType.FLAT,
            processing_fee_percent=Decimal('2'),
            platform_fee_fixed=Decimal('25')
        ))

        assert loan_quote.processing_fee == Decimal('100.00')
        assert loan_quote.platform_fee == Decimal('25.00')
        assert loan_quote.total_fees == Decimal('125.00')
        assert loan_quote.total_repayable == Decimal('5625.00')
        assert loan_quote.number_of_installments == 1
        assert loan_quote.final_installment_amount == Decimal('5625.00')

    def test_declining_uses_installment_count(self):
        loan_quote = quote(LoanTerms(
            principal=Decimal('1200'),
            annual_rate_percent=Decimal('12'),
            term_days=90,
            rate_type=RateType.DECLINING
        ))

        assert isinstance(loan_quote.interest_detail, DecliningInterest)
        assert loan_quote.interest_detail.number_of_payments == 3
        assert loan_quote.total_interest == Decimal('23.67')

    def test_variable_tiers_passed_through(self):
        loan_quote = quote(LoanTerms(
            principal=Decimal('10000'),
            annual_rate_percent=Decimal('9'),
            term_days=45,
            rate_type=RateType.VARIABLE,
            tiers=[{"days": 30, "rate": 8}, {"days": 30, "rate": 10}]
        ))
        assert loan_quote.total_interest == Decimal('106.85')

    def test_zero_decimal_currency(self):
        """Yen quotes carry whole amounts so payments can settle them exactly"""
        loan_quote = quote(LoanTerms(
            principal=Decimal('1000'),
            annual_rate_percent=Decimal('12'),
            term_days=90,
            rate_type=RateType.FIXED,
            processing_fee_percent=Decimal('1.25'),
            currency=Currency.JPY
        ))

        # Interest 29.59 and fee 12.5 round half-up to whole yen
        assert loan_quote.total_interest == Decimal('30')
        assert loan_quote.processing_fee == Decimal('13')
        assert loan_quote.total_repayable == Decimal('1043')
        assert loan_quote.installment_amounts() == [Decimal('348'), Decimal('348'), Decimal('347')]

    def test_processing_fee_currency_precision(self):
        assert calculate_processing_fee(Decimal('1000'), Decimal('1.25'), Currency.JPY) == Decimal('13')

    def test_too_small_to_split(self):
        """Rounding the installment up must not leave a negative final installment"""
        with pytest.raises(InvalidLoanParameters, match="too small"):
            quote(LoanTerms(
                principal=Decimal('0.05'),
                annual_rate_percent=Decimal('0'),
                term_days=7,
                rate_type=RateType.FIXED,
                payment_frequency=PaymentFrequency.DAILY
            ))

    @pytest.mark.parametrize("rate_type", list(RateType))
    @pytest.mark.parametrize("principal, rate, term_days, frequency", [
        (Decimal('10000'), Decimal('12'), 365, PaymentFrequency.MONTHLY),
        (Decimal('777.77'), Decimal('19.9'), 100, PaymentFrequency.WEEKLY),
        (Decimal('2500'), Decimal('36'), 45, PaymentFrequency.DAILY),
        (Decimal('1000'), Decimal('0'), 90, PaymentFrequency.MONTHLY),
    ])
    def test_installments_sum_to_total(self, rate_type, principal, rate, term_days, frequency):
        loan_quote = quote(LoanTerms(
            principal=principal,
            annual_rate_percent=rate,
            term_days=term_days,
            rate_type=rate_type,
            payment_frequency=frequency,
            processing_fee_percent=Decimal('1.5'),
            platform_fee_fixed=Decimal('10'),
            tiers=[{"days": 30, "rate": 8}, {"days": 60, "rate": 11}]
        ))

        amounts = loan_quote.installment_amounts()
        assert len(amounts) == loan_quote.number_of_installments
        assert sum(amounts) == loan_quote.total_repayable
        assert loan_quote.final_installment_amount >= Decimal('0')
        assert loan_quote.total_repayable == (
            loan_quote.principal + loan_quote.total_interest + loan_quote.total_fees
        )
