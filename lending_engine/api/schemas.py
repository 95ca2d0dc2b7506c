"""
Pydantic schemas for API requests and responses
"""

from datetime import date
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ..config import get_config
from ..currency import Money, Currency, to_decimal
from ..loans import (
    LoanTerms, LoanAccount, LoanStatus, Payment, RateTier, parse_enum, parse_currency
)
from ..rates import RateParameters


def _currency(code: Optional[str]) -> Currency:
    return parse_currency(code or get_config().default_currency)


class MoneyModel(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")
    currency: str = Field("USD", description="Currency code (USD, EUR, etc.)")

    def to_money(self) -> Money:
        return Money(to_decimal(self.amount), _currency(self.currency))

    @classmethod
    def from_money(cls, money: Money) -> 'MoneyModel':
        return cls(amount=str(money.amount), currency=money.currency.code)


class RateTierModel(BaseModel):
    days: int
    rate: str = Field(..., description="Annual rate percentage for the tier")

    def to_rate_tier(self) -> RateTier:
        return RateTier(days=self.days, rate_percent=to_decimal(self.rate))


class InterestRequest(BaseModel):
    principal: str
    annual_rate: str = Field(..., description="Annual rate percentage, 12 means 12%")
    term_days: int
    rate_type: str = Field(..., description="fixed, variable, declining, flat or compound")
    tiers: List[RateTierModel] = []
    number_of_payments: Optional[int] = None
    payment_frequency: str = "monthly"
    compounding_frequency: Optional[str] = None

    def to_rate_parameters(self) -> RateParameters:
        return RateParameters(
            tiers=tuple(tier.to_rate_tier() for tier in self.tiers),
            number_of_payments=self.number_of_payments,
            payment_frequency=self.payment_frequency,
            compounding_frequency=self.compounding_frequency
        )


class LoanTermsModel(BaseModel):
    principal: str
    annual_rate: str = Field(..., description="Annual rate percentage, 12 means 12%")
    term_days: int
    rate_type: str = "fixed"
    payment_frequency: str = "monthly"
    processing_fee_percent: str = "0"
    platform_fee_fixed: str = "0"
    tiers: List[RateTierModel] = []
    compounding_frequency: str = "annually"
    currency: Optional[str] = None

    def to_loan_terms(self) -> LoanTerms:
        return LoanTerms(
            principal=self.principal,
            annual_rate_percent=self.annual_rate,
            term_days=self.term_days,
            rate_type=self.rate_type,
            payment_frequency=self.payment_frequency,
            processing_fee_percent=self.processing_fee_percent,
            platform_fee_fixed=self.platform_fee_fixed,
            tiers=tuple(tier.to_rate_tier() for tier in self.tiers),
            compounding_frequency=self.compounding_frequency,
            currency=_currency(self.currency)
        )


class InstallmentRequest(BaseModel):
    principal: str
    annual_rate: str
    number_of_installments: int


class PaymentModel(BaseModel):
    amount: str
    payment_date: str  # ISO date string
    reference: Optional[str] = None

    def to_payment(self, loan_id: str, currency: Currency) -> Payment:
        return Payment(
            loan_id=loan_id,
            amount=Money(to_decimal(self.amount), currency),
            payment_date=date.fromisoformat(self.payment_date),
            reference=self.reference
        )


class ScheduleRequest(BaseModel):
    loan_id: str
    quote: Dict[str, Any] = Field(..., description="Stored loan quote fields")
    disbursement_date: str  # ISO date string
    payments: List[PaymentModel] = []
    as_of_date: Optional[str] = None  # Defaults to today


class AllocatePaymentRequest(BaseModel):
    loan_id: str
    amount: str
    total_amount: str
    outstanding_balance: str
    amount_paid: str = "0"
    status: str = "active"
    interest_due: str = "0"
    penalty_due: str = "0"
    currency: Optional[str] = None
    policy: Optional[str] = None
    payment_date: Optional[str] = None

    def to_loan_account(self) -> LoanAccount:
        currency = _currency(self.currency)
        return LoanAccount(
            loan_id=self.loan_id,
            total_amount=Money(to_decimal(self.total_amount), currency),
            outstanding_balance=Money(to_decimal(self.outstanding_balance), currency),
            amount_paid=Money(to_decimal(self.amount_paid), currency),
            status=parse_enum(LoanStatus, self.status, "loan status"),
            interest_due=Money(to_decimal(self.interest_due), currency),
            penalty_due=Money(to_decimal(self.penalty_due), currency)
        )
