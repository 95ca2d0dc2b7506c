"""
Payment allocation endpoints
"""

from datetime import date

from fastapi import APIRouter, HTTPException

from .schemas import AllocatePaymentRequest, MoneyModel
from ..allocation import allocate


router = APIRouter()


@router.post("/allocate")
async def allocate_payment(request: AllocatePaymentRequest):
    """Apply a payment to the loan balances supplied by the caller"""
    try:
        loan = request.to_loan_account()
        payment_date = date.fromisoformat(request.payment_date) if request.payment_date else None
        result = allocate(loan, request.amount, policy=request.policy, payment_date=payment_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "loan_id": result.loan_id,
        "outstanding_balance": MoneyModel.from_money(result.new_outstanding_balance).dict(),
        "amount_paid": MoneyModel.from_money(result.new_amount_paid).dict(),
        "status": result.loan_status.value,
        "policy": result.policy.value,
        "principal_amount": MoneyModel.from_money(result.split.principal).dict(),
        "interest_amount": MoneyModel.from_money(result.split.interest).dict(),
        "penalty_amount": MoneyModel.from_money(result.split.penalty).dict()
    }
