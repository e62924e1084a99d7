"""Borrower risk state: eligibility, credit limit and the cached credit score"""

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.credit_limit import compute_credit_limit
from credit_ledger.domain.eligibility import compute_eligibility, derive_kyc_status
from credit_ledger.domain.exceptions import DomainException, NotFoundError
from credit_ledger.domain.models import (
    CreditLimit,
    CreditLimitPolicy,
    CreditScoreResult,
    EligibilityInput,
    EligibilityResult,
)
from credit_ledger.domain.scoring import compute_credit_score
from credit_ledger.infrastructure.database.models import Borrower
from credit_ledger.infrastructure.database.repositories import ApplicationRepository, BorrowerRepository
from credit_ledger.infrastructure.observability.logging import log_ledger_event
from credit_ledger.infrastructure.observability.metrics import eligibility_counter, record_credit_score


def credit_limit_policy() -> CreditLimitPolicy:
    return CreditLimitPolicy(
        base_multiplier=settings.credit_base_income_multiplier,
        step_multiplier=settings.credit_step_multiplier,
        max_multiplier=settings.credit_max_income_multiplier,
        disposable_multiplier=settings.credit_disposable_multiplier,
    )


def borrower_kyc_status(borrower: Borrower) -> str:
    return derive_kyc_status(borrower.kyc_status, bool(borrower.facial_image), bool(borrower.id_image))


def evaluate_eligibility(
    db: Session,
    borrower_id: str,
    requested_amount: Any,
    collateral_value: Any = None,
    credit_score: Any = None,
) -> Optional[EligibilityResult]:
    """
    Score an application against the borrower's current aggregates.

    Returns None when the borrower does not exist. The credit score falls
    back to the borrower's cached score when none (or zero) is supplied.
    """
    borrowers = BorrowerRepository(db)
    borrower = borrowers.get(borrower_id)
    if borrower is None:
        return None

    result = compute_eligibility(
        EligibilityInput(
            requested_amount=requested_amount,
            monthly_income=borrower.monthly_income,
            credit_score=credit_score or borrower.credit_score or 0,
            total_outstanding=borrowers.total_outstanding(borrower_id),
            kyc_status=borrower_kyc_status(borrower),
            collateral_value=collateral_value,
        )
    )
    eligibility_counter.labels(status=result.eligibility_status).inc()
    return result


def get_credit_limit(db: Session, borrower_id: str) -> CreditLimit:
    borrowers = BorrowerRepository(db)
    borrower = borrowers.get(borrower_id)
    if borrower is None:
        raise NotFoundError(f"Borrower {borrower_id} not found")

    return compute_credit_limit(
        monthly_income=borrower.monthly_income,
        monthly_expenses=borrower.monthly_expenses,
        completed_loans=borrowers.completed_loan_count(borrower_id),
        total_outstanding=borrowers.total_outstanding(borrower_id),
        policy=credit_limit_policy(),
    )


def compute_borrower_score(db: Session, borrower_id: str, today: Optional[date] = None) -> CreditScoreResult:
    """Score from full history without persisting it"""
    borrowers = BorrowerRepository(db)
    borrower = borrowers.get(borrower_id)
    if borrower is None:
        raise NotFoundError(f"Borrower {borrower_id} not found")
    return compute_credit_score(borrowers.get_history(borrower), today=today)


def refresh_application_eligibility(db: Session, application_id: str) -> EligibilityResult:
    """Recompute and store eligibility for one application"""
    applications = ApplicationRepository(db)
    application = applications.get(application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")

    result = evaluate_eligibility(
        db,
        application.borrower_id,
        application.requested_amount,
        collateral_value=application.collateral_value,
    )
    if result is None:
        raise NotFoundError(f"Borrower {application.borrower_id} not found")

    applications.apply_eligibility(application, result)
    db.commit()
    return result


def refresh_open_applications(db: Session, borrower_id: str) -> int:
    """Re-run eligibility on pending/under-review applications after a score change"""
    applications = ApplicationRepository(db)
    updated = 0
    for application in applications.open_for_borrower(borrower_id):
        result = evaluate_eligibility(
            db,
            borrower_id,
            application.requested_amount,
            collateral_value=application.collateral_value,
        )
        if result is None:
            continue
        applications.apply_eligibility(application, result)
        updated += 1
    db.commit()
    return updated


def refresh_credit_score(db: Session, borrower_id: str, today: Optional[date] = None) -> CreditScoreResult:
    """
    Recompute the borrower's score and persist it as the cached credit_score.

    Open applications are re-scored afterwards since a new score can flip
    their eligibility status; that step is best effort.
    """
    result = compute_borrower_score(db, borrower_id, today=today)

    borrowers = BorrowerRepository(db)
    borrowers.set_credit_score(borrowers.get(borrower_id), result.score)
    db.commit()

    record_credit_score(result.score)
    log_ledger_event("credit_score_refreshed", borrower_id=borrower_id, score=result.score)

    try:
        refresh_open_applications(db, borrower_id)
    except SQLAlchemyError as e:
        db.rollback()
        logging.warning(f"Eligibility refresh failed: {e}", extra={"borrower_id": borrower_id})

    return result


def refresh_credit_score_best_effort(
    db: Session, borrower_id: str, today: Optional[date] = None
) -> Optional[CreditScoreResult]:
    """Post-commit refresh; failures only leave the cached score stale"""
    try:
        return refresh_credit_score(db, borrower_id, today=today)
    except (DomainException, SQLAlchemyError) as e:
        db.rollback()
        logging.warning(f"Credit score refresh failed: {e}", extra={"borrower_id": borrower_id})
        return None
