"""
Loan Data Model Module

Loan terms, rate tiers, quotes, payments and the running balance fields of a
loan record. Quotes are immutable once computed; schedules are never stored
here, they are projected from a quote and the payment ledger on every read.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
from enum import Enum

from .currency import Currency, Money, round_money, to_decimal, ZERO
from .exceptions import (
    LendingEngineError, InvalidLoanParameters, InvalidPaymentError, UnsupportedRateType
)


class RateType(Enum):
    """Interest rate models"""
    FIXED = "fixed"            # Simple daily interest on the original principal
    VARIABLE = "variable"      # Fixed-style interest per rate tier
    DECLINING = "declining"    # Interest on the beginning balance of each period
    FLAT = "flat"              # Percentage of principal, term-independent
    COMPOUND = "compound"      # Closed-form compound interest

    @classmethod
    def parse(cls, value) -> 'RateType':
        """Resolve a RateType or tag string, raising UnsupportedRateType"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedRateType(value)


class PaymentFrequency(Enum):
    """Installment frequency options"""
    DAILY = "daily"      # 1 day per period
    WEEKLY = "weekly"    # 7 days per period
    MONTHLY = "monthly"  # 30 days per period

    @property
    def period_days(self) -> int:
        """Calendar days between installments"""
        return {
            PaymentFrequency.DAILY: 1,
            PaymentFrequency.WEEKLY: 7,
            PaymentFrequency.MONTHLY: 30
        }[self]


class CompoundingFrequency(Enum):
    """How often interest compounds"""
    DAILY = "daily"          # 365 times per year
    WEEKLY = "weekly"        # 52 times per year
    MONTHLY = "monthly"      # 12 times per year
    QUARTERLY = "quarterly"  # 4 times per year
    ANNUALLY = "annually"    # 1 time per year

    @property
    def periods_per_year(self) -> int:
        return {
            CompoundingFrequency.DAILY: 365,
            CompoundingFrequency.WEEKLY: 52,
            CompoundingFrequency.MONTHLY: 12,
            CompoundingFrequency.QUARTERLY: 4,
            CompoundingFrequency.ANNUALLY: 1
        }[self]


class InstallmentStatus(Enum):
    """Settlement state of a projected installment"""
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"


class LoanStatus(Enum):
    """Loan states the allocator reads and writes"""
    ACTIVE = "active"
    OVERDUE = "overdue"
    PAID_OFF = "paid_off"


def parse_enum(enum_cls, value, label: str):
    """Resolve an enum member from itself or its value, raising InvalidLoanParameters"""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise InvalidLoanParameters(f"Invalid {label} {value!r}. Valid values: {valid}")


def parse_currency(value) -> Currency:
    """Resolve a Currency or ISO code, raising InvalidLoanParameters"""
    if isinstance(value, Currency):
        return value
    try:
        return Currency[str(value).strip().upper()]
    except KeyError:
        raise InvalidLoanParameters(f"Unsupported currency {value!r}")


def _decimal_param(value: Any, label: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError:
        raise InvalidLoanParameters(f"{label} must be a number, got {value!r}")


@dataclass(frozen=True)
class RateTier:
    """A sub-period of the loan term with its own annual rate"""
    days: int
    rate_percent: Decimal

    def __post_init__(self):
        if isinstance(self.days, bool) or not isinstance(self.days, int) or self.days <= 0:
            raise InvalidLoanParameters(f"Tier days must be a positive integer, got {self.days!r}")
        rate = _decimal_param(self.rate_percent, "Tier rate")
        if rate < ZERO:
            raise InvalidLoanParameters("Tier rate cannot be negative")
        object.__setattr__(self, 'rate_percent', rate)

    @classmethod
    def coerce(cls, value) -> 'RateTier':
        """Accept a RateTier or a mapping with days and rate/rate_percent"""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            rate = value.get('rate_percent', value.get('rate'))
            return cls(days=value.get('days'), rate_percent=rate)
        raise InvalidLoanParameters(f"Cannot build a rate tier from {value!r}")


def coerce_tiers(tiers: Optional[Iterable]) -> Tuple[RateTier, ...]:
    if not tiers:
        return ()
    return tuple(RateTier.coerce(tier) for tier in tiers)


@dataclass(frozen=True)
class LoanTerms:
    """Validated inputs for a quote"""
    principal: Decimal
    annual_rate_percent: Decimal        # e.g. 12 for 12%
    term_days: int
    rate_type: RateType
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    processing_fee_percent: Decimal = ZERO
    platform_fee_fixed: Decimal = ZERO
    tiers: Tuple[RateTier, ...] = ()
    compounding_frequency: CompoundingFrequency = CompoundingFrequency.ANNUALLY
    currency: Currency = Currency.USD

    def __post_init__(self):
        principal = _decimal_param(self.principal, "Principal")
        rate = _decimal_param(self.annual_rate_percent, "Interest rate")
        processing_fee = _decimal_param(self.processing_fee_percent, "Processing fee")
        platform_fee = _decimal_param(self.platform_fee_fixed, "Platform fee")

        if principal <= ZERO:
            raise InvalidLoanParameters("Principal must be greater than 0")
        if rate < ZERO:
            raise InvalidLoanParameters("Interest rate cannot be negative")
        if isinstance(self.term_days, bool) or not isinstance(self.term_days, int):
            raise InvalidLoanParameters(f"Term days must be an integer, got {self.term_days!r}")
        if self.term_days < 1:
            raise InvalidLoanParameters("Term must be at least 1 day")
        if processing_fee < ZERO:
            raise InvalidLoanParameters("Processing fee cannot be negative")
        if platform_fee < ZERO:
            raise InvalidLoanParameters("Platform fee cannot be negative")

        currency = parse_currency(self.currency)
        for label, amount in (("Principal", principal), ("Platform fee", platform_fee)):
            if round_money(amount, currency) != amount:
                raise InvalidLoanParameters(
                    f"{label} {amount} has more decimal places than {currency.code} allows"
                )

        object.__setattr__(self, 'principal', principal)
        object.__setattr__(self, 'annual_rate_percent', rate)
        object.__setattr__(self, 'processing_fee_percent', processing_fee)
        object.__setattr__(self, 'platform_fee_fixed', platform_fee)
        object.__setattr__(self, 'rate_type', RateType.parse(self.rate_type))
        object.__setattr__(self, 'payment_frequency',
                           parse_enum(PaymentFrequency, self.payment_frequency, "payment frequency"))
        object.__setattr__(self, 'compounding_frequency',
                           parse_enum(CompoundingFrequency, self.compounding_frequency,
                                      "compounding frequency"))
        object.__setattr__(self, 'tiers', coerce_tiers(self.tiers))
        object.__setattr__(self, 'currency', currency)


@dataclass(frozen=True)
class LoanQuote:
    """Derived quote, written onto the loan record and immutable after disbursement"""
    principal: Decimal
    rate_type: RateType
    annual_rate_percent: Decimal
    term_days: int
    payment_frequency: PaymentFrequency
    total_interest: Decimal
    processing_fee: Decimal
    platform_fee: Decimal
    total_fees: Decimal
    total_repayable: Decimal
    installment_amount: Decimal
    final_installment_amount: Decimal
    number_of_installments: int
    currency: Currency = Currency.USD
    interest_detail: Any = field(default=None, compare=False)

    def installment_total(self, installment_number: int) -> Decimal:
        """Amount due for a 1-based installment; the last one absorbs rounding"""
        if installment_number < 1 or installment_number > self.number_of_installments:
            raise InvalidLoanParameters(
                f"Installment {installment_number} outside 1..{self.number_of_installments}"
            )
        if installment_number == self.number_of_installments:
            return self.final_installment_amount
        return self.installment_amount

    def installment_amounts(self) -> List[Decimal]:
        return [self.installment_total(number)
                for number in range(1, self.number_of_installments + 1)]

    def to_record(self) -> Dict[str, Any]:
        """Fields written verbatim onto the loan record"""
        return {
            'principal_amount': str(self.principal),
            'interest_rate': str(self.annual_rate_percent),
            'rate_type': self.rate_type.value,
            'term_days': self.term_days,
            'payment_frequency': self.payment_frequency.value,
            'total_interest': str(self.total_interest),
            'processing_fee': str(self.processing_fee),
            'platform_fee': str(self.platform_fee),
            'total_amount': str(self.total_repayable),
            'monthly_payment': str(self.installment_amount),
            'final_payment': str(self.final_installment_amount),
            'number_of_installments': self.number_of_installments,
            'outstanding_balance': str(self.total_repayable),
            'currency': self.currency.code
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> 'LoanQuote':
        """
        Rebuild a quote from the stored loan record fields

        Raises:
            InvalidLoanParameters: If a field is missing or malformed, or the
                installment amounts do not add up to the total amount
        """
        try:
            processing_fee = to_decimal(data.get('processing_fee', '0'))
            platform_fee = to_decimal(data.get('platform_fee', '0'))
            loan_quote = cls(
                principal=to_decimal(data['principal_amount']),
                rate_type=RateType.parse(data['rate_type']),
                annual_rate_percent=to_decimal(data['interest_rate']),
                term_days=int(data['term_days']),
                payment_frequency=parse_enum(PaymentFrequency, data['payment_frequency'],
                                             "payment frequency"),
                total_interest=to_decimal(data['total_interest']),
                processing_fee=processing_fee,
                platform_fee=platform_fee,
                total_fees=processing_fee + platform_fee,
                total_repayable=to_decimal(data['total_amount']),
                installment_amount=to_decimal(data['monthly_payment']),
                final_installment_amount=to_decimal(data['final_payment']),
                number_of_installments=int(data['number_of_installments']),
                currency=parse_currency(data.get('currency', 'USD'))
            )
        except KeyError as e:
            raise InvalidLoanParameters(f"Loan record is missing field {e.args[0]!r}")
        except LendingEngineError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidLoanParameters(f"Loan record has an invalid field: {e}")

        loan_quote._check_record()
        return loan_quote

    def _check_record(self) -> None:
        if self.principal <= ZERO:
            raise InvalidLoanParameters("Loan record principal must be greater than 0")
        if self.total_repayable <= ZERO:
            raise InvalidLoanParameters("Loan record total amount must be greater than 0")
        if self.number_of_installments < 1:
            raise InvalidLoanParameters("Loan record must have at least one installment")
        if self.installment_amount < ZERO or self.final_installment_amount < ZERO:
            raise InvalidLoanParameters("Loan record installment amounts cannot be negative")

        scheduled = (self.installment_amount * (self.number_of_installments - 1)
                     + self.final_installment_amount)
        if scheduled != self.total_repayable:
            raise InvalidLoanParameters(
                f"Loan record installments sum to {scheduled}, not total amount {self.total_repayable}"
            )


@dataclass(frozen=True)
class Payment:
    """Ledger entry, created once at recording time and never mutated"""
    loan_id: str
    amount: Money
    payment_date: date
    reference: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.amount, Money):
            try:
                object.__setattr__(self, 'amount', Money(to_decimal(self.amount)))
            except ValueError:
                raise InvalidPaymentError(f"Payment amount must be a number, got {self.amount!r}")
        if not self.amount.is_positive():
            raise InvalidPaymentError("Payment amount must be greater than 0")


@dataclass
class LoanAccount:
    """Running balance fields of a loan record, mutated by payment allocation"""
    loan_id: str
    total_amount: Money
    outstanding_balance: Money = None
    amount_paid: Money = None
    status: LoanStatus = LoanStatus.ACTIVE

    # Components owed besides principal, read by waterfall allocation
    interest_due: Money = None
    penalty_due: Money = None

    principal_paid: Money = None
    interest_paid: Money = None
    penalty_paid: Money = None
    last_payment_date: Optional[date] = None

    def __post_init__(self):
        if self.outstanding_balance is None:
            self.outstanding_balance = self.total_amount

        zero_amount = Money(ZERO, self.total_amount.currency)
        for name in ('amount_paid', 'interest_due', 'penalty_due',
                     'principal_paid', 'interest_paid', 'penalty_paid'):
            if getattr(self, name) is None:
                setattr(self, name, zero_amount)

    @classmethod
    def from_quote(cls, loan_id: str, quote: LoanQuote) -> 'LoanAccount':
        """Open the running balances at total repayable"""
        return cls(loan_id=loan_id, total_amount=Money(quote.total_repayable, quote.currency))

    @property
    def currency(self) -> Currency:
        return self.total_amount.currency

    @property
    def is_paid_off(self) -> bool:
        return self.status == LoanStatus.PAID_OFF
