"""
Test suite for payment allocation module

Tests the principal-only default, the interest-first waterfall, custom
strategies and validation before any balance is touched.
"""

import pytest
from decimal import Decimal
from datetime import date

from lending_engine.allocation import (
    AllocationPolicy, AllocationSplit, AllocationStrategy,
    PrincipalOnlyStrategy, InterestFirstWaterfallStrategy,
    allocate, get_allocation_strategy
)
from lending_engine.config import get_config
from lending_engine.currency import Money, Currency
from lending_engine.exceptions import InvalidPaymentError
from lending_engine.loans import LoanAccount, LoanStatus


def usd(amount):
    return Money(Decimal(amount), Currency.USD)


def make_loan(outstanding='1000', interest_due='0', penalty_due='0', status=LoanStatus.ACTIVE):
    return LoanAccount(
        loan_id="LN1",
        total_amount=usd('1000'),
        outstanding_balance=usd(outstanding),
        status=status,
        interest_due=usd(interest_due),
        penalty_due=usd(penalty_due)
    )


class PenaltyFirstStrategy(AllocationStrategy):
    """Sends everything to penalty, for exercising the custom policy"""

    def split(self, loan, amount):
        zero_amount = Money(Decimal('0'), amount.currency)
        return AllocationSplit(principal=zero_amount, interest=zero_amount, penalty=amount)


class BrokenStrategy(AllocationStrategy):
    """Loses a cent on every split"""

    def split(self, loan, amount):
        zero_amount = Money(Decimal('0'), amount.currency)
        return AllocationSplit(principal=amount - usd('0.01'), interest=zero_amount,
                               penalty=zero_amount)


class TestPrincipalOnly:
    """Test the default principal-only allocation"""

    def test_partial_payment(self):
        loan = make_loan()
        result = allocate(loan, Decimal('250'))

        assert result.new_outstanding_balance == usd('750')
        assert result.new_amount_paid == usd('250')
        assert result.loan_status == LoanStatus.ACTIVE
        assert result.policy == AllocationPolicy.PRINCIPAL_ONLY
        assert result.split.principal == usd('250')
        assert result.split.interest.is_zero()
        assert result.split.penalty.is_zero()

        assert loan.outstanding_balance == usd('750')
        assert loan.amount_paid == usd('250')
        assert loan.principal_paid == usd('250')

    def test_exact_payoff(self):
        loan = make_loan(outstanding='100')
        result = allocate(loan, "100")

        assert result.new_outstanding_balance.is_zero()
        assert result.loan_status == LoanStatus.PAID_OFF
        assert loan.is_paid_off

    def test_overpayment_clamps_to_zero(self):
        loan = make_loan(outstanding='100')
        result = allocate(loan, Decimal('150'))

        assert result.new_outstanding_balance == usd('0')
        assert result.new_amount_paid == usd('150')
        assert result.loan_status == LoanStatus.PAID_OFF

    def test_status_unchanged_when_balance_remains(self):
        loan = make_loan(status=LoanStatus.OVERDUE)
        result = allocate(loan, Decimal('10'))

        assert result.loan_status == LoanStatus.OVERDUE
        assert loan.status == LoanStatus.OVERDUE

    def test_successive_payments_accumulate(self):
        loan = make_loan()
        allocate(loan, Decimal('300'))
        allocate(loan, Decimal('300'))
        result = allocate(loan, Decimal('400'), payment_date=date(2024, 3, 1))

        assert result.new_amount_paid == usd('1000')
        assert result.loan_status == LoanStatus.PAID_OFF
        assert loan.last_payment_date == date(2024, 3, 1)


class TestWaterfall:
    """Test interest-first waterfall allocation"""

    def test_interest_then_principal(self):
        loan = make_loan(interest_due='50', penalty_due='20')
        result = allocate(loan, Decimal('100'), policy=AllocationPolicy.INTEREST_FIRST_WATERFALL)

        assert result.split.interest == usd('50')
        assert result.split.principal == usd('50')
        assert result.split.penalty.is_zero()
        assert result.new_outstanding_balance == usd('900')
        assert loan.interest_due.is_zero()
        assert loan.penalty_due == usd('20')
        assert loan.interest_paid == usd('50')

    def test_penalty_after_principal(self):
        loan = make_loan(interest_due='50', penalty_due='20')
        result = allocate(loan, Decimal('1000'), policy="interest_first_waterfall")

        assert result.split.interest == usd('50')
        assert result.split.principal == usd('930')
        assert result.split.penalty == usd('20')
        assert result.loan_status == LoanStatus.PAID_OFF
        assert loan.penalty_due.is_zero()

    def test_small_payment_goes_to_interest(self):
        strategy = InterestFirstWaterfallStrategy()
        split = strategy.split(make_loan(interest_due='50'), usd('30'))

        assert split.interest == usd('30')
        assert split.principal.is_zero()

    def test_remainder_goes_to_principal(self):
        strategy = InterestFirstWaterfallStrategy()
        split = strategy.split(make_loan(outstanding='100', interest_due='10', penalty_due='5'),
                               usd('120'))

        assert split.interest == usd('10')
        assert split.penalty == usd('5')
        assert split.principal == usd('105')


class TestStrategyResolution:
    """Test policy to strategy resolution"""

    def test_default_policy_from_config(self):
        assert isinstance(get_allocation_strategy(), PrincipalOnlyStrategy)

    def test_configured_policy(self, monkeypatch):
        monkeypatch.setattr(get_config(), "allocation_policy", "interest_first_waterfall")
        assert isinstance(get_allocation_strategy(), InterestFirstWaterfallStrategy)

    def test_custom_strategy(self):
        loan = make_loan(penalty_due='20')
        result = allocate(loan, Decimal('20'), policy=AllocationPolicy.CUSTOM,
                          strategy=PenaltyFirstStrategy())

        assert result.policy == AllocationPolicy.CUSTOM
        assert result.split.penalty == usd('20')
        assert loan.penalty_due.is_zero()
        assert result.new_outstanding_balance == usd('980')

    def test_strategy_without_policy_is_custom(self):
        loan = make_loan(penalty_due='20')
        result = allocate(loan, Decimal('20'), strategy=PenaltyFirstStrategy())

        assert result.policy == AllocationPolicy.CUSTOM
        assert result.split.penalty == usd('20')
        assert result.split.principal.is_zero()

    def test_strategy_with_builtin_policy(self):
        loan = make_loan(penalty_due='20')
        with pytest.raises(InvalidPaymentError, match="cannot be combined"):
            allocate(loan, Decimal('20'), policy="principal_only", strategy=PenaltyFirstStrategy())

        assert loan.outstanding_balance == usd('1000')
        assert loan.penalty_due == usd('20')

    def test_custom_without_strategy(self):
        with pytest.raises(InvalidPaymentError, match="requires a strategy"):
            get_allocation_strategy(AllocationPolicy.CUSTOM)

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Invalid allocation policy"):
            get_allocation_strategy("newest_first")

    def test_inconsistent_split_leaves_loan_untouched(self):
        loan = make_loan()
        with pytest.raises(InvalidPaymentError, match="inconsistently"):
            allocate(loan, Decimal('100'), policy="custom", strategy=BrokenStrategy())

        assert loan.outstanding_balance == usd('1000')
        assert loan.amount_paid.is_zero()


class TestValidation:
    """Test payment validation before mutation"""

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-5'), "0.001"])
    def test_non_positive_amount(self, amount):
        loan = make_loan()
        with pytest.raises(InvalidPaymentError, match="greater than 0"):
            allocate(loan, amount)
        assert loan.outstanding_balance == usd('1000')

    def test_non_numeric_amount(self):
        with pytest.raises(InvalidPaymentError, match="must be a number"):
            allocate(make_loan(), "ten dollars")

    def test_paid_off_loan_rejects_payment(self):
        loan = make_loan(outstanding='0', status=LoanStatus.PAID_OFF)
        with pytest.raises(InvalidPaymentError, match="already paid off"):
            allocate(loan, Decimal('10'))
        assert loan.amount_paid.is_zero()

    def test_currency_mismatch(self):
        loan = make_loan()
        with pytest.raises(InvalidPaymentError, match="does not match"):
            allocate(loan, Money(Decimal('10'), Currency.EUR))
        assert loan.outstanding_balance == usd('1000')

    def test_reject_overpayment_when_configured(self, monkeypatch):
        monkeypatch.setattr(get_config(), "reject_overpayment", True)
        loan = make_loan(outstanding='100')

        with pytest.raises(InvalidPaymentError, match="exceeds outstanding balance"):
            allocate(loan, Decimal('150'))
        assert loan.outstanding_balance == usd('100')
        assert loan.status == LoanStatus.ACTIVE
