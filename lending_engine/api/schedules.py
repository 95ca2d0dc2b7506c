"""
Repayment schedule endpoints
"""

from datetime import date

from fastapi import APIRouter, HTTPException

from .schemas import ScheduleRequest
from ..loans import LoanQuote
from ..schedule import generate_schedule, summarize_schedule


router = APIRouter()


@router.post("")
async def project_schedule(request: ScheduleRequest):
    """Project the repayment schedule from a stored quote and its payments"""
    try:
        loan_quote = LoanQuote.from_record(request.quote)
        payments = [payment.to_payment(request.loan_id, loan_quote.currency)
                    for payment in request.payments]
        as_of_date = date.fromisoformat(request.as_of_date) if request.as_of_date else date.today()

        installments = generate_schedule(
            loan_quote,
            date.fromisoformat(request.disbursement_date),
            payments,
            as_of_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    summary = summarize_schedule(installments)

    return {
        "loan_id": request.loan_id,
        "as_of_date": as_of_date.isoformat(),
        "schedule": [installment.to_dict() for installment in installments],
        "summary": {
            "total": summary.total_installments,
            "paid": summary.paid,
            "partially_paid": summary.partially_paid,
            "pending": summary.pending,
            "overdue": summary.overdue,
            "total_due": str(summary.total_due),
            "total_paid": str(summary.total_paid),
            "total_outstanding": str(summary.total_outstanding),
            "next_due_installment": summary.next_due.installment_number if summary.next_due else None
        }
    }
