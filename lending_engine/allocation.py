"""
Payment Allocation Module

Applies an incoming payment to a loan's running balances. The default policy
sends the whole payment to principal; the split is pluggable through
AllocationStrategy so a waterfall can replace it without touching schedule
generation.
"""

from abc import ABC, abstractmethod
from datetime import date
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from .config import get_config
from .currency import Money, to_decimal, ZERO
from .exceptions import InvalidPaymentError
from .loans import LoanAccount, LoanStatus, parse_enum
from .logging_config import get_logger, log_action

logger = get_logger("lending_engine.allocation")


class AllocationPolicy(Enum):
    """How a payment is split across components"""
    PRINCIPAL_ONLY = "principal_only"
    INTEREST_FIRST_WATERFALL = "interest_first_waterfall"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AllocationSplit:
    """Payment components; they always add up to the payment amount"""
    principal: Money
    interest: Money
    penalty: Money


@dataclass(frozen=True)
class AllocationResult:
    """Balances written back onto the loan record"""
    loan_id: str
    payment_amount: Money
    new_outstanding_balance: Money
    new_amount_paid: Money
    loan_status: LoanStatus
    split: AllocationSplit
    policy: AllocationPolicy


class AllocationStrategy(ABC):
    """Decides how one payment is split for a loan"""

    policy: AllocationPolicy = AllocationPolicy.CUSTOM

    @abstractmethod
    def split(self, loan: LoanAccount, amount: Money) -> AllocationSplit:
        """Split a payment amount into principal, interest and penalty"""
        pass


class PrincipalOnlyStrategy(AllocationStrategy):
    """Whole payment reduces principal; no interest or penalty component"""

    policy = AllocationPolicy.PRINCIPAL_ONLY

    def split(self, loan: LoanAccount, amount: Money) -> AllocationSplit:
        zero_amount = Money(ZERO, amount.currency)
        return AllocationSplit(principal=amount, interest=zero_amount, penalty=zero_amount)


class InterestFirstWaterfallStrategy(AllocationStrategy):
    """
    Interest due first, then outstanding principal, then penalty due.
    Anything left over after all three is an overpayment and goes to principal.
    """

    policy = AllocationPolicy.INTEREST_FIRST_WATERFALL

    def split(self, loan: LoanAccount, amount: Money) -> AllocationSplit:
        remaining = amount.amount

        interest = min(remaining, max(loan.interest_due.amount, ZERO))
        remaining -= interest

        principal_owed = max(
            loan.outstanding_balance.amount - loan.interest_due.amount - loan.penalty_due.amount,
            ZERO
        )
        principal = min(remaining, principal_owed)
        remaining -= principal

        penalty = min(remaining, max(loan.penalty_due.amount, ZERO))
        remaining -= penalty

        principal += remaining

        return AllocationSplit(
            principal=Money(principal, amount.currency),
            interest=Money(interest, amount.currency),
            penalty=Money(penalty, amount.currency)
        )


def get_allocation_strategy(policy=None,
                            custom: Optional[AllocationStrategy] = None) -> AllocationStrategy:
    """
    Resolve a policy tag to a strategy

    A custom strategy is used when the policy is CUSTOM or not given. Passing
    one together with a built-in policy is an error.

    Args:
        policy: AllocationPolicy or its value; defaults to config, or to
            CUSTOM when a custom strategy is given
        custom: Strategy to use for AllocationPolicy.CUSTOM
    """
    if policy is None:
        policy = AllocationPolicy.CUSTOM if custom is not None else get_config().allocation_policy
    policy = parse_enum(AllocationPolicy, policy, "allocation policy")

    if custom is not None and policy != AllocationPolicy.CUSTOM:
        raise InvalidPaymentError(
            f"A custom allocation strategy cannot be combined with the {policy.value} policy"
        )

    if policy == AllocationPolicy.PRINCIPAL_ONLY:
        return PrincipalOnlyStrategy()
    if policy == AllocationPolicy.INTEREST_FIRST_WATERFALL:
        return InterestFirstWaterfallStrategy()
    if custom is None:
        raise InvalidPaymentError("Custom allocation policy requires a strategy")
    return custom


def _validate_payment(loan: LoanAccount, amount: Money, reject_overpayment: bool) -> None:
    if amount.currency != loan.currency:
        raise InvalidPaymentError(
            f"Payment currency {amount.currency.code} does not match loan currency {loan.currency.code}"
        )
    if not amount.is_positive():
        raise InvalidPaymentError("Payment amount must be greater than 0")
    if loan.is_paid_off:
        raise InvalidPaymentError(f"Loan {loan.loan_id} is already paid off")
    if reject_overpayment and amount > loan.outstanding_balance:
        raise InvalidPaymentError(
            f"Payment amount exceeds outstanding balance ({loan.outstanding_balance.to_string()})"
        )


def allocate(
    loan: LoanAccount,
    payment_amount,
    policy=None,
    strategy: Optional[AllocationStrategy] = None,
    payment_date: Optional[date] = None
) -> AllocationResult:
    """
    Apply a payment to the loan's running balances

    The full payment reduces outstanding_balance and increases amount_paid
    whatever the split. When the outstanding balance reaches zero or below it
    is clamped to zero and the loan becomes PAID_OFF; otherwise the status is
    left as it was. All validation happens before the loan is touched.

    Args:
        loan: Loan running balances, mutated in place
        payment_amount: Money, Decimal or numeric string in the loan currency
        policy: Allocation policy, defaults to config
        strategy: Strategy object for the CUSTOM policy
        payment_date: Recorded as the loan's last payment date

    Returns:
        AllocationResult with the new balances and the split

    Raises:
        InvalidPaymentError: If the payment cannot be applied
    """
    if isinstance(payment_amount, Money):
        amount = payment_amount
    else:
        try:
            amount = Money(to_decimal(payment_amount), loan.currency)
        except ValueError:
            raise InvalidPaymentError(f"Payment amount must be a number, got {payment_amount!r}")

    _validate_payment(loan, amount, get_config().reject_overpayment)

    chosen = get_allocation_strategy(policy, strategy)
    split = chosen.split(loan, amount)
    if split.principal + split.interest + split.penalty != amount:
        raise InvalidPaymentError(
            f"Allocation strategy {type(chosen).__name__} split {amount.to_string()} inconsistently"
        )

    zero_amount = Money(ZERO, loan.currency)
    new_outstanding = loan.outstanding_balance - amount

    loan.amount_paid = loan.amount_paid + amount
    loan.principal_paid = loan.principal_paid + split.principal
    loan.interest_paid = loan.interest_paid + split.interest
    loan.penalty_paid = loan.penalty_paid + split.penalty
    loan.interest_due = max(loan.interest_due - split.interest, zero_amount)
    loan.penalty_due = max(loan.penalty_due - split.penalty, zero_amount)
    if payment_date:
        loan.last_payment_date = payment_date

    if new_outstanding.is_zero() or new_outstanding.is_negative():
        loan.outstanding_balance = zero_amount
        loan.status = LoanStatus.PAID_OFF
    else:
        loan.outstanding_balance = new_outstanding

    log_action(
        logger, "info", f"Payment of {amount.to_string()} allocated",
        loan_id=loan.loan_id, action="allocate_payment",
        extra={
            "policy": chosen.policy.value,
            "principal": str(split.principal.amount),
            "interest": str(split.interest.amount),
            "penalty": str(split.penalty.amount),
            "outstanding_balance": str(loan.outstanding_balance.amount),
            "status": loan.status.value
        }
    )

    return AllocationResult(
        loan_id=loan.loan_id,
        payment_amount=amount,
        new_outstanding_balance=loan.outstanding_balance,
        new_amount_paid=loan.amount_paid,
        loan_status=loan.status,
        split=split,
        policy=chosen.policy
    )
