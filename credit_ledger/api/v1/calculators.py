"""POST /v1/quotes and /v1/late-fee - stateless pricing calculators"""

from fastapi import APIRouter

from credit_ledger.api.v1.schemas import LateFeeRequest, LateFeeResponse, QuoteRequest, QuoteResponse
from credit_ledger.domain.amortization import compute_totals
from credit_ledger.domain.late_fees import compute_late_fee

router = APIRouter()


@router.post("/quotes", response_model=QuoteResponse)
def create_quote(request_body: QuoteRequest):
    """Monthly payment and total repayable for the given loan terms"""
    totals = compute_totals(
        request_body.principal,
        request_body.annual_rate_percent,
        request_body.term_months,
        request_body.interest_type,
    )
    return QuoteResponse(monthly_payment=totals.monthly_payment, total_amount=totals.total_amount)


@router.post("/late-fee", response_model=LateFeeResponse)
def calculate_late_fee(request_body: LateFeeRequest):
    fee = compute_late_fee(
        request_body.payment_date,
        request_body.due_date,
        request_body.grace_period_days,
        request_body.penalty_rate_percent,
        request_body.penalty_flat,
        request_body.base_amount,
    )
    return LateFeeResponse(late_fee=fee.late_fee, days_late=fee.days_late)
