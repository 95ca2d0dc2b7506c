"""
Quote and interest endpoints
"""

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status

from .schemas import LoanTermsModel, InterestRequest, InstallmentRequest
from ..amortization import calculate_total_payable
from ..loans import LoanQuote
from ..quotes import quote
from ..rates import compute_interest


router = APIRouter()


def quote_to_dict(loan_quote: LoanQuote) -> Dict[str, Any]:
    """Stored record fields plus the rate model detail"""
    result = loan_quote.to_record()
    result['installment_amounts'] = [str(amount) for amount in loan_quote.installment_amounts()]
    if loan_quote.interest_detail is not None:
        result['interest_detail'] = loan_quote.interest_detail.to_dict()
    return result


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_quote(request: LoanTermsModel):
    """Quote a loan from its terms"""
    try:
        return quote_to_dict(quote(request.to_loan_terms()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/interest")
async def calculate_interest(request: InterestRequest):
    """Compute interest for one rate model"""
    try:
        result = compute_interest(
            request.principal,
            request.annual_rate,
            request.term_days,
            request.rate_type,
            request.to_rate_parameters()
        )
        return result.to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/installment")
async def calculate_installment(request: InstallmentRequest):
    """Equated installment and totals for a reducing-balance loan"""
    try:
        breakdown = calculate_total_payable(
            request.principal, request.annual_rate, request.number_of_installments
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "principal": str(breakdown.principal),
        "annual_rate": str(breakdown.annual_rate_percent),
        "number_of_installments": breakdown.number_of_installments,
        "installment_amount": str(breakdown.installment_amount),
        "total_payable": str(breakdown.total_payable),
        "total_interest": str(breakdown.total_interest)
    }
