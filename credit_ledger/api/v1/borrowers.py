"""GET /v1/borrowers/{borrower_id}/... - credit score and credit limit"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from credit_ledger.api.v1.schemas import CreditLimitResponse, CreditScoreFactorsSchema, CreditScoreResponse
from credit_ledger.domain.exceptions import NotFoundError
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.risk import get_credit_limit, refresh_credit_score

router = APIRouter()


@router.get("/borrowers/{borrower_id}/credit-score", response_model=CreditScoreResponse)
def get_credit_score(borrower_id: str, db: Session = Depends(get_db)):
    """Recompute the score from full history and store it on the borrower"""
    try:
        result = refresh_credit_score(db, borrower_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    factors = result.factors
    return CreditScoreResponse(
        borrower_id=borrower_id,
        score=result.score,
        factors=CreditScoreFactorsSchema(
            payment_history=factors.payment_history,
            credit_utilization=factors.credit_utilization,
            credit_age=factors.credit_age,
            total_debt=factors.total_debt,
            recent_inquiries=factors.recent_inquiries,
        ),
    )


@router.get("/borrowers/{borrower_id}/credit-limit", response_model=CreditLimitResponse)
def get_borrower_credit_limit(borrower_id: str, db: Session = Depends(get_db)):
    try:
        limit = get_credit_limit(db, borrower_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return CreditLimitResponse(
        borrower_id=borrower_id,
        monthly_income=limit.monthly_income,
        monthly_expenses=limit.monthly_expenses,
        completed_loans=limit.completed_loans,
        income_multiplier=limit.income_multiplier,
        cap_by_income=limit.cap_by_income,
        cap_by_disposable=limit.cap_by_disposable,
        max_credit=limit.max_credit,
        total_outstanding=limit.total_outstanding,
        available_credit=limit.available_credit,
    )
