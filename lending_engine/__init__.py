"""
Lending Engine

Loan financial engine for a lending back office: interest computation across
five rate models, installment derivation, quotes, repayment schedules projected
from the payment ledger, and payment allocation. All money math uses Decimal.
"""

__version__ = "1.0.0"
