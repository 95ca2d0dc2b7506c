"""
Loan Quote Module

Composes rate model interest with processing and platform fees into a quote:
total repayable, number of installments and the per-installment amount. The
final installment absorbs the rounding remainder so the schedule sums exactly
to the total repayable.
"""

from decimal import Decimal

from .currency import Currency, round_money, to_decimal, ZERO
from .exceptions import InvalidLoanParameters
from .logging_config import get_logger
from .loans import LoanTerms, LoanQuote, PaymentFrequency, parse_enum
from .rates import RateParameters, compute_interest

logger = get_logger("lending_engine.quotes")


def calculate_processing_fee(principal, fee_percent, currency: Currency = Currency.USD) -> Decimal:
    """Processing fee as a percentage of principal, rounded to the currency's minor unit"""
    try:
        principal = to_decimal(principal)
        fee_percent = to_decimal(fee_percent)
    except ValueError as e:
        raise InvalidLoanParameters(str(e))
    if fee_percent < ZERO:
        raise InvalidLoanParameters("Processing fee cannot be negative")
    return round_money(principal * fee_percent / Decimal('100'), currency)


def number_of_installments(term_days: int, frequency) -> int:
    """
    Installments needed to cover the term

    Daily pays every day; weekly and monthly round partial periods up.
    """
    frequency = parse_enum(PaymentFrequency, frequency, "payment frequency")
    if isinstance(term_days, bool) or not isinstance(term_days, int) or term_days < 1:
        raise InvalidLoanParameters("Term must be at least 1 day")

    if frequency == PaymentFrequency.DAILY:
        return term_days
    return -(-term_days // frequency.period_days)


def quote(terms: LoanTerms) -> LoanQuote:
    """
    Build a complete quote for validated loan terms

    Args:
        terms: Loan terms

    Returns:
        LoanQuote whose installments sum to total_repayable
    """
    installments = number_of_installments(terms.term_days, terms.payment_frequency)

    interest = compute_interest(
        terms.principal,
        terms.annual_rate_percent,
        terms.term_days,
        terms.rate_type,
        RateParameters(
            tiers=terms.tiers,
            number_of_payments=installments,
            payment_frequency=terms.payment_frequency,
            compounding_frequency=terms.compounding_frequency
        )
    )

    currency = terms.currency
    total_interest = round_money(interest.total_interest, currency)

    processing_fee = calculate_processing_fee(terms.principal, terms.processing_fee_percent, currency)
    platform_fee = round_money(terms.platform_fee_fixed, currency)
    total_fees = processing_fee + platform_fee

    total_repayable = round_money(terms.principal + total_interest + total_fees, currency)

    installment_amount = round_money(total_repayable / Decimal(installments), currency)
    final_installment = total_repayable - installment_amount * (installments - 1)
    if final_installment < ZERO:
        raise InvalidLoanParameters(
            f"Total repayable {total_repayable} is too small to split into {installments} installments"
        )

    loan_quote = LoanQuote(
        principal=terms.principal,
        rate_type=terms.rate_type,
        annual_rate_percent=terms.annual_rate_percent,
        term_days=terms.term_days,
        payment_frequency=terms.payment_frequency,
        total_interest=total_interest,
        processing_fee=processing_fee,
        platform_fee=platform_fee,
        total_fees=total_fees,
        total_repayable=total_repayable,
        installment_amount=installment_amount,
        final_installment_amount=final_installment,
        number_of_installments=installments,
        currency=currency,
        interest_detail=interest
    )

    logger.debug(
        "Quoted %s loan: principal %s, interest %s, fees %s, %s x %s",
        terms.rate_type.value, terms.principal, total_interest,
        total_fees, installments, installment_amount
    )
    return loan_quote
