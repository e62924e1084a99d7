"""Loan application intake gated by KYC and available credit"""

from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.amortization import INTEREST_TYPES
from credit_ledger.domain.exceptions import (
    CreditLimitExceededError,
    InvalidInputError,
    NotFoundError,
    TransactionFailureError,
)
from credit_ledger.domain.models import ApplicationRequest, NotificationSpec
from credit_ledger.infrastructure.database.models import LoanApplication
from credit_ledger.infrastructure.database.repositories import (
    ApplicationRepository,
    AuditLogRepository,
    BorrowerRepository,
    NotificationRepository,
    commit_side_effects,
)
from credit_ledger.services.risk import borrower_kyc_status, evaluate_eligibility, get_credit_limit
from credit_ledger.utils.numbers import safe_float

REVIEW_ROLES = ("loan_officer", "manager", "admin")


def _intake_notifications(application: LoanApplication, borrower_name: str) -> list[NotificationSpec]:
    notifications = [
        NotificationSpec(
            target_role="borrower",
            type="application_submitted",
            title="Application submitted",
            message=f"Your application for {application.requested_amount} was received.",
            severity="info",
            reference_key=f"app-{application.id}-borrower-submitted",
            borrower_id=application.borrower_id,
        )
    ]
    for role in REVIEW_ROLES:
        notifications.append(
            NotificationSpec(
                target_role=role,
                type="application_submitted",
                title="New loan application",
                message=f"{borrower_name} applied for {application.requested_amount}.",
                severity="info",
                reference_key=f"app-{application.id}-{role.replace('_', '')}-review",
            )
        )
    return notifications


def submit_application(db: Session, request: ApplicationRequest) -> LoanApplication:
    """
    Validate and persist a new application with its eligibility snapshot.

    Raises:
        NotFoundError: borrower does not exist
        InvalidInputError: bad amount, KYC not verified, or no income on file
        CreditLimitExceededError: requested amount above available credit
        TransactionFailureError: the insert could not be committed
    """
    requested_amount = safe_float(request.requested_amount)
    if requested_amount <= 0:
        raise InvalidInputError("requestedAmount must be a valid number greater than 0.")

    borrowers = BorrowerRepository(db)
    borrower = borrowers.get(request.borrower_id)
    if borrower is None:
        raise NotFoundError(f"Borrower {request.borrower_id} not found")

    kyc_status = borrower_kyc_status(borrower)
    if kyc_status != "verified":
        raise InvalidInputError("KYC verification is required before applying for a loan.")

    limit = get_credit_limit(db, borrower.id)
    if limit.monthly_income <= 0:
        raise InvalidInputError("Borrower monthly income must be provided as part of KYC.")
    if requested_amount > limit.available_credit:
        raise CreditLimitExceededError(requested_amount, limit.available_credit)

    credit_score = safe_float(request.credit_score) or safe_float(borrower.credit_score)
    if credit_score <= 0:
        raise InvalidInputError("creditScore is required and must be a valid number.")

    interest_type = request.interest_type or settings.default_interest_type
    if interest_type not in INTEREST_TYPES:
        raise InvalidInputError(f"interestType must be one of {', '.join(INTEREST_TYPES)}.")

    eligibility = evaluate_eligibility(
        db,
        borrower.id,
        requested_amount,
        collateral_value=request.collateral_value,
        credit_score=credit_score,
    )

    applications = ApplicationRepository(db)
    try:
        application = applications.create(
            borrower_id=borrower.id,
            loan_type=request.loan_type,
            purpose=request.purpose,
            requested_amount=requested_amount,
            collateral_value=request.collateral_value,
            credit_score=int(credit_score),
            status="pending",
            application_date=request.application_date or date.today(),
            interest_type=interest_type,
            grace_period_days=(
                request.grace_period_days
                if request.grace_period_days is not None
                else settings.default_grace_period_days
            ),
            penalty_rate=request.penalty_rate if request.penalty_rate is not None else settings.default_penalty_rate,
            penalty_flat=request.penalty_flat if request.penalty_flat is not None else settings.default_penalty_flat,
        )
        applications.apply_eligibility(application, eligibility)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise TransactionFailureError(f"Application could not be saved: {e}") from e

    AuditLogRepository(db).log(
        action="APPLICATION_SUBMITTED",
        entity="LOAN_APPLICATION",
        entity_id=application.id,
        details=(
            f"Application for {requested_amount} by {borrower.full_name}: "
            f"{eligibility.eligibility_status} (score {eligibility.eligibility_score})."
        ),
    )
    NotificationRepository(db).emit_all(_intake_notifications(application, borrower.full_name))
    commit_side_effects(db, application_id=application.id)

    return application
