"""POST /v1/applications - loan application intake and eligibility refresh"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from credit_ledger.api.dependencies import get_request_id
from credit_ledger.api.v1.schemas import ApplicationCreateRequest, ApplicationResponse, EligibilityResponse
from credit_ledger.domain.exceptions import InvalidInputError, NotFoundError, TransactionFailureError
from credit_ledger.domain.models import ApplicationRequest
from credit_ledger.infrastructure.database.models import LoanApplication
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.applications import submit_application
from credit_ledger.services.risk import refresh_application_eligibility

router = APIRouter()


def _eligibility_response(application: LoanApplication) -> EligibilityResponse:
    return EligibilityResponse(
        eligibility_status=application.eligibility_status,
        eligibility_score=application.eligibility_score,
        income_ratio=application.income_ratio,
        debt_to_income=application.debt_to_income,
        risk_tier=application.risk_tier,
        kyc_status=application.kyc_status,
        document_status=application.document_status,
        recommendation=application.recommendation,
    )


def _application_response(application: LoanApplication) -> ApplicationResponse:
    return ApplicationResponse(
        application_id=application.id,
        borrower_id=application.borrower_id,
        requested_amount=application.requested_amount,
        status=application.status,
        eligibility=_eligibility_response(application),
    )


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
def create_application(
    request_body: ApplicationCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Submit a loan application.

    The borrower must be KYC verified with income on file and the amount
    must fit within available credit. Eligibility is scored and stored on
    the application; staff are notified for review.
    """
    request_id = get_request_id(request)
    try:
        application = submit_application(
            db,
            ApplicationRequest(
                borrower_id=request_body.borrower_id,
                requested_amount=request_body.requested_amount,
                loan_type=request_body.loan_type,
                purpose=request_body.purpose,
                collateral_value=request_body.collateral_value,
                credit_score=request_body.credit_score,
                interest_type=request_body.interest_type,
                grace_period_days=request_body.grace_period_days,
                penalty_rate=request_body.penalty_rate,
                penalty_flat=request_body.penalty_flat,
            ),
        )
        return _application_response(application)

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidInputError as e:
        logging.warning(f"Application rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except TransactionFailureError as e:
        logging.error(f"Application failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Application could not be saved")


@router.post("/applications/{application_id}/eligibility", response_model=EligibilityResponse)
def refresh_eligibility(application_id: str, db: Session = Depends(get_db)):
    """Re-score an application against the borrower's current figures"""
    try:
        result = refresh_application_eligibility(db, application_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return EligibilityResponse(
        eligibility_status=result.eligibility_status,
        eligibility_score=result.eligibility_score,
        income_ratio=result.income_ratio,
        debt_to_income=result.debt_to_income,
        risk_tier=result.risk_tier,
        kyc_status=result.kyc_status,
        document_status=result.document_status,
        recommendation=result.recommendation,
    )
