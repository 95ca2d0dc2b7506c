"""
Repayment Schedule Module

Projects a quote and the loan's payment ledger onto an installment schedule.
Nothing here is stored: the schedule and every installment status are
recomputed from (quote, payments, as-of date) on each call, so the schedule
cannot drift from the ledger.
"""

from decimal import Decimal
from datetime import date, timedelta
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .config import get_config
from .currency import round_money, to_decimal, ZERO
from .exceptions import InvalidLoanParameters, InvalidPaymentError
from .loans import LoanQuote, Payment, InstallmentStatus
from .logging_config import get_logger

logger = get_logger("lending_engine.schedule")


@dataclass(frozen=True)
class RepaymentInstallment:
    """One projected installment with its settlement state"""
    installment_number: int
    due_date: date
    principal_portion: Decimal
    interest_portion: Decimal
    fee_portion: Decimal
    total_due: Decimal
    amount_paid: Decimal           # Allocated to this installment
    amount_paid_so_far: Decimal    # Allocated to installments 1..n
    outstanding_amount: Decimal
    status: InstallmentStatus
    days_overdue: int = 0

    @property
    def is_settled(self) -> bool:
        return self.status == InstallmentStatus.PAID

    def to_dict(self) -> Dict[str, Any]:
        return {
            'installment_number': self.installment_number,
            'due_date': self.due_date.isoformat(),
            'principal_portion': str(self.principal_portion),
            'interest_portion': str(self.interest_portion),
            'fee_portion': str(self.fee_portion),
            'total_due': str(self.total_due),
            'amount_paid': str(self.amount_paid),
            'amount_paid_so_far': str(self.amount_paid_so_far),
            'outstanding_amount': str(self.outstanding_amount),
            'status': self.status.value,
            'days_overdue': self.days_overdue
        }


@dataclass(frozen=True)
class ScheduleSummary:
    """Counts and totals over a projected schedule"""
    total_installments: int
    paid: int
    partially_paid: int
    pending: int
    overdue: int
    total_due: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    next_due: Optional[RepaymentInstallment] = None


def _split_portions(quote: LoanQuote, total_due: Decimal):
    """
    Apportion an installment by the quote's aggregate ratios.

    Fees take the rounding remainder; without fees the interest portion does,
    so the three portions always add up to total_due.
    """
    principal_portion = round_money(total_due * quote.principal / quote.total_repayable, quote.currency)

    if quote.total_fees == ZERO:
        return principal_portion, total_due - principal_portion, ZERO

    interest_portion = round_money(total_due * quote.total_interest / quote.total_repayable,
                                   quote.currency)
    return principal_portion, interest_portion, total_due - principal_portion - interest_portion


def _derive_status(amount_paid: Decimal, total_due: Decimal, due_date: date,
                   as_of_date: date, tolerance: Decimal) -> InstallmentStatus:
    if amount_paid >= total_due - tolerance:
        return InstallmentStatus.PAID
    if amount_paid > ZERO:
        return InstallmentStatus.PARTIALLY_PAID
    if as_of_date > due_date:
        return InstallmentStatus.OVERDUE
    return InstallmentStatus.PENDING


def order_payments(payments: Iterable[Payment]) -> List[Payment]:
    """Payments in ascending payment date; same-day payments keep ledger order"""
    return sorted(payments, key=lambda payment: payment.payment_date)


def generate_schedule(
    quote: LoanQuote,
    disbursement_date: date,
    payments: Iterable[Payment],
    as_of_date: date,
    paid_tolerance: Optional[Decimal] = None
) -> List[RepaymentInstallment]:
    """
    Generate the repayment schedule as of a date

    Payments are applied cumulatively, oldest installment first. Each
    installment receives clamp(cumulative_paid - prior_totals, 0, total_due).

    Args:
        quote: The loan's quote
        disbursement_date: Date funds were disbursed
        payments: Full payment history for the loan, all with the same loan_id
        as_of_date: Date used to decide whether unpaid installments are overdue
        paid_tolerance: Shortfall still treated as paid, defaults to config

    Returns:
        Installments ordered by installment number
    """
    if quote.number_of_installments < 1:
        raise InvalidLoanParameters("Quote must have at least one installment")
    if quote.total_repayable <= ZERO:
        raise InvalidLoanParameters("Quote total repayable must be greater than 0")

    tolerance = to_decimal(paid_tolerance if paid_tolerance is not None
                           else get_config().paid_tolerance)

    ordered = order_payments(payments)
    loan_ids = {payment.loan_id for payment in ordered}
    if len(loan_ids) > 1:
        raise InvalidPaymentError(
            f"Payments belong to more than one loan: {', '.join(sorted(map(str, loan_ids)))}"
        )
    for payment in ordered:
        if payment.amount.currency != quote.currency:
            raise InvalidPaymentError(
                f"Payment currency {payment.amount.currency.code} does not match "
                f"loan currency {quote.currency.code}"
            )
    cumulative_paid = sum((payment.amount.amount for payment in ordered), ZERO)

    period = timedelta(days=quote.payment_frequency.period_days)
    prior_totals = ZERO
    paid_so_far = ZERO
    schedule = []

    for number in range(1, quote.number_of_installments + 1):
        due_date = disbursement_date + period * number
        total_due = quote.installment_total(number)

        amount_paid = min(max(cumulative_paid - prior_totals, ZERO), total_due)
        prior_totals += total_due
        paid_so_far += amount_paid

        status = _derive_status(amount_paid, total_due, due_date, as_of_date, tolerance)
        days_overdue = 0
        if status != InstallmentStatus.PAID and as_of_date > due_date:
            days_overdue = (as_of_date - due_date).days

        principal_portion, interest_portion, fee_portion = _split_portions(quote, total_due)

        schedule.append(RepaymentInstallment(
            installment_number=number,
            due_date=due_date,
            principal_portion=principal_portion,
            interest_portion=interest_portion,
            fee_portion=fee_portion,
            total_due=total_due,
            amount_paid=amount_paid,
            amount_paid_so_far=paid_so_far,
            outstanding_amount=total_due - amount_paid,
            status=status,
            days_overdue=days_overdue
        ))

    logger.debug(
        "Projected %s installments as of %s from %s payments totalling %s",
        len(schedule), as_of_date.isoformat(), len(ordered), cumulative_paid
    )
    return schedule


def summarize_schedule(installments: List[RepaymentInstallment]) -> ScheduleSummary:
    """Status counts, totals and the next installment still owed"""
    counts = {status: 0 for status in InstallmentStatus}
    for installment in installments:
        counts[installment.status] += 1

    next_due = next((i for i in installments if not i.is_settled), None)

    return ScheduleSummary(
        total_installments=len(installments),
        paid=counts[InstallmentStatus.PAID],
        partially_paid=counts[InstallmentStatus.PARTIALLY_PAID],
        pending=counts[InstallmentStatus.PENDING],
        overdue=counts[InstallmentStatus.OVERDUE],
        total_due=sum((i.total_due for i in installments), ZERO),
        total_paid=sum((i.amount_paid for i in installments), ZERO),
        total_outstanding=sum((i.outstanding_amount for i in installments), ZERO),
        next_due=next_due
    )
