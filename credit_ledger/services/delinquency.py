"""Recurring delinquency sweep: penalties, staged alerts and collections escalation"""

import logging
import time
from datetime import date
from typing import Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.delinquency import (
    COLLECTIONS_REASON,
    delinquency_stage,
    payment_reminder,
    threshold_notifications,
)
from credit_ledger.domain.late_fees import compute_daily_penalty, compute_late_fee
from credit_ledger.domain.models import SweepResult
from credit_ledger.infrastructure.database.models import Loan
from credit_ledger.infrastructure.database.repositories import (
    AuditLogRepository,
    BorrowerRepository,
    CollectionsRepository,
    LoanRepository,
    NotificationRepository,
    PaymentRepository,
    PenaltyRepository,
    commit_side_effects,
)
from credit_ledger.infrastructure.observability.logging import log_ledger_event, log_sweep
from credit_ledger.infrastructure.observability.metrics import (
    collections_counter,
    notifications_counter,
    penalties_counter,
    sweep_duration_histogram,
)
from credit_ledger.services.risk import refresh_credit_score_best_effort
from credit_ledger.utils.numbers import to_money


def _days_late(loan: Loan, today: date) -> int:
    return compute_late_fee(
        today,
        loan.next_due_date,
        loan.grace_period_days,
        loan.penalty_rate,
        loan.penalty_flat,
        loan.outstanding_balance,
    ).days_late


def _accrue_penalty(db: Session, loan: Loan, days_late: int, today: date) -> float:
    """
    Add today's penalty to the loan balance, at most once per loan per day.

    The penalty row and the balance increase commit together; a row already
    present for today means another run got here first and nothing changes.
    Returns the amount added.
    """
    penalties = PenaltyRepository(db)
    locked = LoanRepository(db).get_for_update(loan.id)
    amount = compute_daily_penalty(
        locked.outstanding_balance,
        locked.penalty_rate,
        locked.penalty_flat,
        prior_penalty_count=penalties.count_for_loan(loan.id),
    )
    if amount <= 0:
        db.rollback()
        return 0.0

    result = penalties.record(loan.id, today, days_late, amount)
    if not result.inserted:
        db.rollback()
        return 0.0

    locked.outstanding_balance = to_money(locked.outstanding_balance + amount)
    db.commit()
    return amount


def _escalate_to_collections(db: Session, loan: Loan, days_late: int) -> bool:
    """Open the loan's collections case and default it; True when the case is new"""
    result = CollectionsRepository(db).open_case(loan, days_late, COLLECTIONS_REASON)

    locked = LoanRepository(db).get_for_update(loan.id)
    locked.status = "defaulted"
    db.commit()

    last_payment = PaymentRepository(db).last_payment_date(loan.id)
    AuditLogRepository(db).log(
        action="COLLECTIONS_FORWARDED",
        entity="LOAN",
        entity_id=loan.id,
        details=(
            f"Loan forwarded to collections after {days_late} days delinquent. "
            f"Last payment: {last_payment.isoformat() if last_payment else 'none'}."
        ),
    )
    commit_side_effects(db, loan_id=loan.id)
    return result.inserted


def _process_loan(db: Session, loan: Loan, today: date, result: SweepResult, touched: Set[str]) -> None:
    days_late = _days_late(loan, today)
    stage = delinquency_stage(
        days_late,
        thresholds=settings.delinquency_thresholds,
        collections_threshold=settings.collections_threshold_days,
    )
    if stage == "current":
        return
    result.loans_late += 1
    result.stages[stage] = result.stages.get(stage, 0) + 1

    penalty = _accrue_penalty(db, loan, days_late, today)
    if penalty:
        result.penalties_applied += 1
        result.penalty_total = to_money(result.penalty_total + penalty)
        penalties_counter.inc()
        touched.add(loan.borrower_id)

    borrower = BorrowerRepository(db).get(loan.borrower_id)
    borrower_name = borrower.full_name if borrower else loan.borrower_id
    created = NotificationRepository(db).emit_all(
        threshold_notifications(
            loan.id,
            loan.borrower_id,
            borrower_name,
            days_late,
            thresholds=settings.delinquency_thresholds,
            collections_threshold=settings.collections_threshold_days,
        )
    )
    commit_side_effects(db, loan_id=loan.id)
    result.notifications_created += created
    notifications_counter.inc(created)

    if stage == "defaulted":
        if _escalate_to_collections(db, loan, days_late):
            result.collections_created += 1
            result.new_collections_cases.append(loan.id)
            collections_counter.inc()
            log_ledger_event("collections_forwarded", loan_id=loan.id, days_late=days_late)
        result.loans_defaulted += 1
        touched.add(loan.borrower_id)


def run_delinquency_sweep(db: Session, today: Optional[date] = None) -> SweepResult:
    """
    One pass over every active loan with a due date.

    Per late loan: accrue today's penalty (rate on balance, flat fee on the
    first ever penalty only), raise borrower/manager/admin alerts for each
    reached threshold, and past the collections threshold open a
    collections case and default the loan.

    Every write is keyed (loan+day, reference key, loan), so overlapping or
    repeated runs add nothing. A loan that fails is rolled back and counted;
    the sweep moves on. Affected borrowers get a best-effort score refresh.
    """
    today = today or date.today()
    result = SweepResult()
    touched: Set[str] = set()
    start_time = time.time()

    with sweep_duration_histogram.time():
        for loan in LoanRepository(db).list_active():
            result.loans_scanned += 1
            if loan.next_due_date is None:
                continue
            loan_id = loan.id
            try:
                _process_loan(db, loan, today, result, touched)
            except SQLAlchemyError as e:
                db.rollback()
                result.failures += 1
                logging.error(f"Delinquency processing failed: {e}", extra={"loan_id": loan_id})

        for borrower_id in sorted(touched):
            refresh_credit_score_best_effort(db, borrower_id, today=today)

    log_sweep(
        loans_scanned=result.loans_scanned,
        penalties_applied=result.penalties_applied,
        notifications_created=result.notifications_created,
        collections_created=result.collections_created,
        failures=result.failures,
        duration_ms=(time.time() - start_time) * 1000,
    )
    return result


def run_payment_reminders(db: Session, today: Optional[date] = None) -> int:
    """Upcoming-due and overdue reminders for active loans, one per loan and due date"""
    today = today or date.today()
    notifications = NotificationRepository(db)
    borrowers = BorrowerRepository(db)

    created = 0
    for loan in LoanRepository(db).list_active():
        borrower = borrowers.get(loan.borrower_id)
        reminder = payment_reminder(
            loan.id,
            loan.borrower_id,
            borrower.full_name if borrower else loan.borrower_id,
            loan.next_due_date,
            today,
            _days_late(loan, today) if loan.next_due_date else 0,
            reminder_days=settings.due_reminder_days,
        )
        if reminder and notifications.emit(reminder):
            created += 1
    commit_side_effects(db, step="payment_reminders")
    return created
