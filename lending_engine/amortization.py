"""
Amortization Module

Equated installment (EMI) calculation for reducing-balance products and the
matching amortization table.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import List

from .currency import round_cents, to_decimal, ZERO
from .exceptions import InvalidLoanParameters

MONTHS_PER_YEAR = Decimal('12')
HUNDRED = Decimal('100')


@dataclass(frozen=True)
class InstallmentBreakdown:
    """Totals implied by paying the EMI for every period"""
    principal: Decimal
    annual_rate_percent: Decimal
    number_of_installments: int
    installment_amount: Decimal
    total_payable: Decimal
    total_interest: Decimal


@dataclass(frozen=True)
class AmortizationEntry:
    """Single entry in amortization schedule"""
    payment_number: int
    payment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    remaining_balance: Decimal

    def __post_init__(self):
        # Validate that payment equals principal + interest
        if abs(self.principal_amount + self.interest_amount - self.payment_amount) > Decimal('0.01'):
            raise ValueError(f"Payment amount {self.payment_amount} does not equal "
                             f"principal {self.principal_amount} + interest {self.interest_amount}")


def _validate(principal, annual_rate_percent, number_of_installments):
    try:
        principal = to_decimal(principal)
        rate = to_decimal(annual_rate_percent)
    except ValueError as e:
        raise InvalidLoanParameters(str(e))

    if principal <= ZERO:
        raise InvalidLoanParameters("Principal must be greater than 0")
    if rate < ZERO:
        raise InvalidLoanParameters("Interest rate cannot be negative")
    if isinstance(number_of_installments, bool) or not isinstance(number_of_installments, int) \
            or number_of_installments < 1:
        raise InvalidLoanParameters("Number of installments must be a positive integer")

    return principal, rate, number_of_installments


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / MONTHS_PER_YEAR / HUNDRED


def _raw_installment(principal: Decimal, periodic_rate: Decimal, n: int) -> Decimal:
    if periodic_rate == ZERO:
        # No interest - simple division
        return principal / Decimal(n)

    # Standard loan payment formula: P * [c(1+c)^n] / [(1+c)^n - 1]
    factor = (Decimal('1') + periodic_rate) ** n
    return principal * (periodic_rate * factor) / (factor - Decimal('1'))


def compute_installment(principal, annual_rate_percent, number_of_installments: int) -> Decimal:
    """
    Periodic installment that fully amortizes the principal

    Args:
        principal: Loan principal
        annual_rate_percent: Nominal annual rate as a percentage
        number_of_installments: Number of monthly installments

    Returns:
        Installment rounded to cents. A zero rate splits the principal evenly.
    """
    principal, rate, n = _validate(principal, annual_rate_percent, number_of_installments)
    return round_cents(_raw_installment(principal, monthly_rate(rate), n))


def calculate_total_payable(principal, annual_rate_percent,
                            number_of_installments: int) -> InstallmentBreakdown:
    """Total payable and interest when every installment is the EMI"""
    principal, rate, n = _validate(principal, annual_rate_percent, number_of_installments)
    installment = compute_installment(principal, rate, n)
    total_payable = installment * n

    return InstallmentBreakdown(
        principal=round_cents(principal),
        annual_rate_percent=rate,
        number_of_installments=n,
        installment_amount=installment,
        total_payable=round_cents(total_payable),
        total_interest=round_cents(total_payable - principal)
    )


def generate_amortization_table(principal, annual_rate_percent,
                                number_of_installments: int) -> List[AmortizationEntry]:
    """
    Reducing-balance table for the EMI

    Interest accrues on the remaining balance each month; the final entry pays
    exactly what is left so the balance closes at zero.
    """
    principal, rate, n = _validate(principal, annual_rate_percent, number_of_installments)
    periodic_rate = monthly_rate(rate)
    installment = compute_installment(principal, rate, n)

    schedule = []
    remaining_balance = round_cents(principal)

    for payment_number in range(1, n + 1):
        interest_amount = round_cents(remaining_balance * periodic_rate)
        principal_amount = installment - interest_amount

        if payment_number == n or principal_amount > remaining_balance:
            principal_amount = remaining_balance

        payment_amount = principal_amount + interest_amount
        remaining_balance = remaining_balance - principal_amount

        schedule.append(AmortizationEntry(
            payment_number=payment_number,
            payment_amount=payment_amount,
            principal_amount=principal_amount,
            interest_amount=interest_amount,
            remaining_balance=remaining_balance
        ))

        if remaining_balance == ZERO:
            break

    return schedule
