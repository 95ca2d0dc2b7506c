"""
Interest Rate Models Module

Computes total interest for the five rate models (fixed, variable, declining,
flat, compound). Each model is a pure function over Decimal inputs; the
resolver dispatches on RateType. Totals are rounded half-up to cents.
"""

from decimal import Decimal
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Optional, Tuple
from enum import Enum

from .currency import round_cents, to_decimal, ZERO
from .config import get_config
from .exceptions import InvalidLoanParameters
from .logging_config import get_logger
from .loans import (
    RateType, RateTier, PaymentFrequency, CompoundingFrequency,
    coerce_tiers, parse_enum
)

logger = get_logger("lending_engine.rates")

DAYS_PER_YEAR = Decimal('365')
HUNDRED = Decimal('100')


@dataclass(frozen=True)
class RateParameters:
    """Model-specific inputs; each model reads only the fields it needs"""
    tiers: Tuple[RateTier, ...] = ()
    number_of_payments: Optional[int] = None           # declining
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY  # declining
    compounding_frequency: Optional[CompoundingFrequency] = None     # compound

    def __post_init__(self):
        object.__setattr__(self, 'tiers', coerce_tiers(self.tiers))
        object.__setattr__(self, 'payment_frequency',
                           parse_enum(PaymentFrequency, self.payment_frequency, "payment frequency"))
        if self.compounding_frequency is not None:
            object.__setattr__(self, 'compounding_frequency',
                               parse_enum(CompoundingFrequency, self.compounding_frequency,
                                          "compounding frequency"))
        if self.number_of_payments is not None:
            if isinstance(self.number_of_payments, bool) or not isinstance(self.number_of_payments, int) \
                    or self.number_of_payments < 1:
                raise InvalidLoanParameters("Number of payments must be a positive integer")


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    if hasattr(value, '__dataclass_fields__'):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    return value


@dataclass(frozen=True)
class InterestResult:
    """Fields common to every rate model"""
    rate_type: RateType
    principal: Decimal
    annual_rate_percent: Decimal
    term_days: int
    total_interest: Decimal
    total_amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation with Decimals as strings"""
        return _plain(self)


@dataclass(frozen=True)
class FixedInterest(InterestResult):
    daily_rate_percent: Decimal


@dataclass(frozen=True)
class TierBreakdown:
    tier: int
    days: int
    rate_percent: Decimal
    interest: Decimal


@dataclass(frozen=True)
class VariableInterest(InterestResult):
    tier_breakdown: Tuple[TierBreakdown, ...]
    days_processed: int


@dataclass(frozen=True)
class PeriodBreakdown:
    period: int
    days: int
    beginning_balance: Decimal
    interest_charged: Decimal
    payment: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class DecliningInterest(InterestResult):
    payment_frequency: PaymentFrequency
    number_of_payments: int
    period_breakdown: Tuple[PeriodBreakdown, ...]


@dataclass(frozen=True)
class FlatInterest(InterestResult):
    pass


@dataclass(frozen=True)
class CompoundInterest(InterestResult):
    compounding_frequency: CompoundingFrequency
    periods_per_year: int


def _validate_inputs(principal, annual_rate_percent, days) -> Tuple[Decimal, Decimal, int]:
    """Coerce and validate the inputs shared by all models"""
    try:
        principal = to_decimal(principal)
        rate = to_decimal(annual_rate_percent)
    except ValueError as e:
        raise InvalidLoanParameters(str(e))

    if principal <= ZERO:
        raise InvalidLoanParameters("Principal must be greater than 0")
    if rate < ZERO:
        raise InvalidLoanParameters("Interest rate cannot be negative")
    if isinstance(days, bool) or not isinstance(days, int):
        raise InvalidLoanParameters(f"Days must be an integer, got {days!r}")
    if days < 0:
        raise InvalidLoanParameters("Days cannot be negative")

    return principal, rate, days


def _daily_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / DAYS_PER_YEAR / HUNDRED


def calculate_fixed_interest(principal, annual_rate_percent, days: int,
                             params: Optional[RateParameters] = None) -> FixedInterest:
    """
    Simple interest at the daily equivalent of the annual rate

    interest = principal x (rate / 365 / 100) x days
    """
    principal, rate, days = _validate_inputs(principal, annual_rate_percent, days)

    daily_rate = _daily_rate(rate)
    interest = principal * daily_rate * days

    return FixedInterest(
        rate_type=RateType.FIXED,
        principal=principal,
        annual_rate_percent=rate,
        term_days=days,
        total_interest=round_cents(interest),
        total_amount=round_cents(principal + interest),
        daily_rate_percent=daily_rate * HUNDRED
    )


def calculate_variable_interest(principal, annual_rate_percent, days: int,
                                params: Optional[RateParameters] = None) -> InterestResult:
    """
    Tiered interest: each tier charges fixed interest for its days at its rate.

    Tiers apply in order and stop once the term is covered; the tier that
    crosses the end of the term only contributes the remaining days. Without
    tiers the model falls back to fixed interest at the base rate.
    """
    principal, rate, days = _validate_inputs(principal, annual_rate_percent, days)
    tiers = params.tiers if params else ()

    if not tiers:
        logger.warning("Variable rate requested without tiers, using fixed rate %s%%", rate)
        return calculate_fixed_interest(principal, rate, days)

    total_interest = ZERO
    days_processed = 0
    breakdown = []

    for tier in tiers:
        if days_processed >= days:
            break

        days_in_tier = min(tier.days, days - days_processed)
        tier_interest = calculate_fixed_interest(principal, tier.rate_percent, days_in_tier).total_interest

        total_interest += tier_interest
        breakdown.append(TierBreakdown(
            tier=len(breakdown) + 1,
            days=days_in_tier,
            rate_percent=tier.rate_percent,
            interest=tier_interest
        ))
        days_processed += days_in_tier

    return VariableInterest(
        rate_type=RateType.VARIABLE,
        principal=principal,
        annual_rate_percent=rate,
        term_days=days,
        total_interest=round_cents(total_interest),
        total_amount=round_cents(principal + total_interest),
        tier_breakdown=tuple(breakdown),
        days_processed=days_processed
    )


def calculate_declining_interest(principal, annual_rate_percent, days: int,
                                 params: Optional[RateParameters] = None) -> DecliningInterest:
    """
    Interest on the beginning balance of each period.

    The term is split into periods of the payment frequency's length (the
    last period covers whatever days remain). Each period reduces principal
    by principal / number_of_payments; number_of_payments defaults to the
    number of periods.
    """
    principal, rate, days = _validate_inputs(principal, annual_rate_percent, days)
    params = params or RateParameters()

    period_days = params.payment_frequency.period_days
    periods = -(-days // period_days)
    number_of_payments = params.number_of_payments or max(periods, 1)

    daily_rate = _daily_rate(rate)
    principal_per_period = principal / Decimal(number_of_payments)

    balance = principal
    total_interest = ZERO
    breakdown = []

    for index in range(periods):
        is_last = index == periods - 1
        days_in_period = days - index * period_days if is_last else period_days

        beginning_balance = balance
        period_interest = beginning_balance * daily_rate * days_in_period
        total_interest += period_interest
        balance = max(ZERO, beginning_balance - principal_per_period)

        breakdown.append(PeriodBreakdown(
            period=index + 1,
            days=days_in_period,
            beginning_balance=round_cents(beginning_balance),
            interest_charged=round_cents(period_interest),
            payment=round_cents(beginning_balance - balance),
            ending_balance=round_cents(balance)
        ))

    return DecliningInterest(
        rate_type=RateType.DECLINING,
        principal=principal,
        annual_rate_percent=rate,
        term_days=days,
        total_interest=round_cents(total_interest),
        total_amount=round_cents(principal + total_interest),
        payment_frequency=params.payment_frequency,
        number_of_payments=number_of_payments,
        period_breakdown=tuple(breakdown)
    )


def calculate_flat_interest(principal, annual_rate_percent, days: int,
                            params: Optional[RateParameters] = None) -> FlatInterest:
    """Fixed percentage of principal, independent of the term"""
    principal, rate, days = _validate_inputs(principal, annual_rate_percent, days)

    interest = principal * (rate / HUNDRED)

    return FlatInterest(
        rate_type=RateType.FLAT,
        principal=principal,
        annual_rate_percent=rate,
        term_days=days,
        total_interest=round_cents(interest),
        total_amount=round_cents(principal + interest)
    )


def _compounding_frequency(params: Optional[RateParameters]) -> CompoundingFrequency:
    if params and params.compounding_frequency:
        return params.compounding_frequency
    return parse_enum(CompoundingFrequency, get_config().default_compounding_frequency,
                      "compounding frequency")


def calculate_compound_interest(principal, annual_rate_percent, days: int,
                                params: Optional[RateParameters] = None) -> CompoundInterest:
    """
    Compound interest, A = P(1 + r/n)^(nt)

    n comes from the compounding frequency, t = days / 365.
    """
    principal, rate, days = _validate_inputs(principal, annual_rate_percent, days)
    frequency = _compounding_frequency(params)

    n = Decimal(frequency.periods_per_year)
    t = Decimal(days) / DAYS_PER_YEAR
    r = rate / HUNDRED

    amount = principal * (Decimal('1') + r / n) ** (n * t)
    interest = amount - principal

    return CompoundInterest(
        rate_type=RateType.COMPOUND,
        principal=principal,
        annual_rate_percent=rate,
        term_days=days,
        total_interest=round_cents(interest),
        total_amount=round_cents(amount),
        compounding_frequency=frequency,
        periods_per_year=frequency.periods_per_year
    )


RATE_MODELS: Dict[RateType, Callable[..., InterestResult]] = {
    RateType.FIXED: calculate_fixed_interest,
    RateType.VARIABLE: calculate_variable_interest,
    RateType.DECLINING: calculate_declining_interest,
    RateType.FLAT: calculate_flat_interest,
    RateType.COMPOUND: calculate_compound_interest,
}


def compute_interest(principal, annual_rate_percent, term_days: int, rate_type,
                     params: Optional[RateParameters] = None) -> InterestResult:
    """
    Compute interest for the given rate model

    Args:
        principal: Loan principal, must be positive
        annual_rate_percent: Annual rate as a percentage (12 means 12%)
        term_days: Term length in days, zero or more
        rate_type: RateType or its tag ("fixed", "variable", ...)
        params: Model-specific parameters

    Returns:
        The model's InterestResult with totals rounded to cents

    Raises:
        UnsupportedRateType: If the rate type tag is unknown
        InvalidLoanParameters: If principal, rate or days are invalid
    """
    rate_type = RateType.parse(rate_type)
    result = RATE_MODELS[rate_type](principal, annual_rate_percent, term_days, params)

    logger.debug(
        "Computed %s interest %s on principal %s over %s days",
        rate_type.value, result.total_interest, result.principal, result.term_days
    )
    return result


def effective_annual_rate(nominal_rate_percent, compounding_frequency) -> Decimal:
    """Effective annual rate as a percentage, ((1 + r/n)^n - 1) x 100"""
    try:
        rate = to_decimal(nominal_rate_percent)
    except ValueError as e:
        raise InvalidLoanParameters(str(e))
    if rate < ZERO:
        raise InvalidLoanParameters("Interest rate cannot be negative")

    frequency = parse_enum(CompoundingFrequency, compounding_frequency, "compounding frequency")
    n = Decimal(frequency.periods_per_year)
    effective = (Decimal('1') + rate / HUNDRED / n) ** frequency.periods_per_year - Decimal('1')
    return round_cents(effective * HUNDRED)


def validate_interest_rate(rate, min_rate=None, max_rate=None) -> Decimal:
    """
    Validate a rate against optional product bounds

    Returns:
        The rate as Decimal

    Raises:
        InvalidLoanParameters: Listing every violated constraint
    """
    try:
        rate = to_decimal(rate)
    except ValueError:
        raise InvalidLoanParameters("Rate must be a valid number")

    errors = []
    if rate < ZERO:
        errors.append("Rate cannot be negative")
    if min_rate is not None and rate < to_decimal(min_rate):
        errors.append(f"Rate ({rate}%) cannot be below minimum ({min_rate}%)")
    if max_rate is not None and rate > to_decimal(max_rate):
        errors.append(f"Rate ({rate}%) cannot exceed maximum ({max_rate}%)")

    if errors:
        raise InvalidLoanParameters("; ".join(errors))
    return rate
