"""
Delinquency Module

Late payment penalties, early payoff quotes and affordability checks.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import get_config
from .currency import round_cents, to_decimal, ZERO
from .exceptions import InvalidLoanParameters
from .loans import InstallmentStatus
from .schedule import RepaymentInstallment

HUNDRED = Decimal('100')
PENALTY_PERIOD_DAYS = Decimal('30')


@dataclass(frozen=True)
class EarlyPayoffQuote:
    outstanding_principal: Decimal
    outstanding_interest: Decimal
    total_outstanding: Decimal
    discount_amount: Decimal
    payoff_amount: Decimal


@dataclass(frozen=True)
class AffordabilityAssessment:
    monthly_income: Decimal
    monthly_payment: Decimal
    dti_ratio: Decimal             # Percentage of income
    max_dti_ratio: Decimal
    is_affordable: bool
    max_affordable_payment: Decimal
    disposable_income: Decimal


def _non_negative(value, label: str) -> Decimal:
    try:
        value = to_decimal(value)
    except ValueError:
        raise InvalidLoanParameters(f"{label} must be a number")
    if value < ZERO:
        raise InvalidLoanParameters(f"{label} cannot be negative")
    return value


def _grace_days(grace_period_days: Optional[int]) -> int:
    if grace_period_days is None:
        return get_config().late_penalty_grace_days
    if grace_period_days < 0:
        raise InvalidLoanParameters("Grace period cannot be negative")
    return grace_period_days


def calculate_late_penalty(overdue_amount, days_overdue: int, penalty_rate_percent,
                           grace_period_days: Optional[int] = None) -> Decimal:
    """
    Penalty on an overdue amount, charged per 30-day period after the grace period

    penalty = amount x rate / 100 x (days_overdue - grace) / 30
    """
    overdue_amount = _non_negative(overdue_amount, "Overdue amount")
    rate = _non_negative(penalty_rate_percent, "Penalty rate")
    grace = _grace_days(grace_period_days)

    if days_overdue <= grace:
        return ZERO

    applicable_days = Decimal(days_overdue - grace)
    return round_cents(overdue_amount * (rate / HUNDRED) * applicable_days / PENALTY_PERIOD_DAYS)


def assess_schedule_penalties(installments: List[RepaymentInstallment], penalty_rate_percent,
                              grace_period_days: Optional[int] = None) -> Dict[int, Decimal]:
    """Penalty per installment number for every unpaid installment past its due date"""
    penalties = {}
    for installment in installments:
        if installment.status == InstallmentStatus.PAID or installment.days_overdue <= 0:
            continue
        penalty = calculate_late_penalty(
            installment.outstanding_amount,
            installment.days_overdue,
            penalty_rate_percent,
            grace_period_days
        )
        if penalty > ZERO:
            penalties[installment.installment_number] = penalty
    return penalties


def calculate_early_payoff(outstanding_principal, outstanding_interest,
                           discount_percent=ZERO) -> EarlyPayoffQuote:
    """Payoff amount with a discount on the outstanding interest only"""
    principal = _non_negative(outstanding_principal, "Outstanding principal")
    interest = _non_negative(outstanding_interest, "Outstanding interest")
    discount = _non_negative(discount_percent, "Discount")
    if discount > HUNDRED:
        raise InvalidLoanParameters("Discount cannot exceed 100%")

    total = principal + interest
    discount_amount = round_cents(interest * discount / HUNDRED)

    return EarlyPayoffQuote(
        outstanding_principal=principal,
        outstanding_interest=interest,
        total_outstanding=round_cents(total),
        discount_amount=discount_amount,
        payoff_amount=round_cents(total - discount_amount)
    )


def calculate_affordability(monthly_income, monthly_payment,
                            max_dti_ratio=Decimal('40')) -> AffordabilityAssessment:
    """Debt-to-income check of a monthly payment against monthly income"""
    income = _non_negative(monthly_income, "Monthly income")
    payment = _non_negative(monthly_payment, "Monthly payment")
    max_ratio = _non_negative(max_dti_ratio, "Maximum DTI ratio")
    if income == ZERO:
        raise InvalidLoanParameters("Monthly income must be greater than 0")

    dti_ratio = round_cents(payment / income * HUNDRED)

    return AffordabilityAssessment(
        monthly_income=income,
        monthly_payment=payment,
        dti_ratio=dti_ratio,
        max_dti_ratio=max_ratio,
        is_affordable=payment / income * HUNDRED <= max_ratio,
        max_affordable_payment=round_cents(income * max_ratio / HUNDRED),
        disposable_income=income - payment
    )
