"""POST /v1/loans and /v1/payments - ledger mutations"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from credit_ledger.api.dependencies import get_request_id
from credit_ledger.api.v1.schemas import (
    DisbursementCreateRequest,
    LoanResponse,
    PaymentCreateRequest,
    PaymentResponse,
)
from credit_ledger.domain.exceptions import (
    ConcurrentModificationError,
    InvalidInputError,
    NotFoundError,
    TransactionFailureError,
)
from credit_ledger.domain.models import DisbursementRequest, PaymentRequest
from credit_ledger.infrastructure.database.repositories import LoanRepository
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.ledger import disburse_loan, record_payment

router = APIRouter()


@router.post("/loans", response_model=LoanResponse, status_code=201)
def create_loan(
    request_body: DisbursementCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Disburse an approved application.

    Flow:
    1. Validate terms and the application's approval
    2. Compute monthly payment and total repayable
    3. Insert loan, receipt and application status in one transaction
    4. Audit, notify staff and refresh the borrower's score
    """
    request_id = get_request_id(request)
    try:
        loan = disburse_loan(db, DisbursementRequest(**request_body.model_dump()))

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidInputError as e:
        logging.warning(f"Disbursement rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except TransactionFailureError as e:
        logging.error(f"Disbursement failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Disbursement could not be completed")

    return LoanResponse(
        loan_id=loan.id,
        application_id=loan.application_id,
        borrower_id=loan.borrower_id,
        principal_amount=loan.principal_amount,
        monthly_payment=loan.monthly_payment,
        total_amount=loan.total_amount,
        outstanding_balance=loan.outstanding_balance,
        next_due_date=loan.next_due_date,
        status=loan.status,
        receipt_number=loan.receipt_number,
    )


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    request_body: PaymentCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Record a repayment; a concurrent write to the same loan returns 409"""
    request_id = get_request_id(request)
    try:
        payment = record_payment(db, PaymentRequest(**request_body.model_dump()))

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidInputError as e:
        logging.warning(f"Payment rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except ConcurrentModificationError as e:
        logging.warning(f"Payment conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except TransactionFailureError as e:
        logging.error(f"Payment failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Payment could not be recorded")

    loan = LoanRepository(db).get(payment.loan_id)
    return PaymentResponse(
        payment_id=payment.id,
        loan_id=payment.loan_id,
        amount=payment.amount,
        status=payment.status,
        late_fee=payment.late_fee or 0.0,
        receipt_number=payment.receipt_number,
        outstanding_balance=loan.outstanding_balance,
        loan_status=loan.status,
        next_due_date=loan.next_due_date,
    )
