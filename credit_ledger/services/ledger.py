"""Atomic balance mutations: loan disbursement and payment receipt"""

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from credit_ledger.config import settings
from credit_ledger.domain.amortization import INTEREST_TYPES, compute_totals
from credit_ledger.domain.exceptions import (
    ConcurrentModificationError,
    InvalidInputError,
    NotFoundError,
    TransactionFailureError,
)
from credit_ledger.domain.late_fees import compute_late_fee
from credit_ledger.domain.models import DisbursementRequest, NotificationSpec, PaymentRequest
from credit_ledger.infrastructure.database.models import Loan, Payment
from credit_ledger.infrastructure.database.repositories import (
    ApplicationRepository,
    AuditLogRepository,
    BorrowerRepository,
    LoanRepository,
    NotificationRepository,
    PaymentRepository,
    commit_side_effects,
)
from credit_ledger.infrastructure.observability.logging import log_ledger_event
from credit_ledger.infrastructure.observability.metrics import (
    disbursements_counter,
    payments_counter,
    transaction_failures_counter,
)
from credit_ledger.services.risk import refresh_credit_score_best_effort
from credit_ledger.utils.date_utils import add_months
from credit_ledger.utils.numbers import safe_float, to_money

PAYMENT_STATUSES = ("paid", "late", "pending")
CLOSED_LOAN_STATUSES = ("completed", "written_off")

DISBURSEMENT_FANOUT_ROLES = ("cashier", "loan_officer", "manager", "admin")
PAYMENT_FANOUT_ROLES = ("manager", "cashier", "admin")


def generate_receipt_number(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"


def _pick(*values):
    """First value that is not None"""
    return next((v for v in values if v is not None), None)


def disburse_loan(db: Session, request: DisbursementRequest, today: Optional[date] = None) -> Loan:
    """
    Pay out an approved application.

    In one transaction: insert the loan (totals from the amortization
    calculator unless supplied), upsert its disbursement receipt and mark the
    application disbursed. Any database error rolls back all three.
    The application is re-read under its row lock before the approved check,
    and loan.application_id is unique, so one application yields one loan.
    The borrower's credit score is refreshed after commit, best effort.

    Raises:
        InvalidInputError: bad amounts/terms or application not approved
        NotFoundError: application or borrower missing
        TransactionFailureError: nothing was committed; safe to retry
    """
    today = today or date.today()

    principal = safe_float(request.principal_amount)
    if principal <= 0:
        raise InvalidInputError("principalAmount must be a valid number greater than 0.")
    interest_rate = safe_float(request.interest_rate, default=-1.0)
    if interest_rate < 0:
        raise InvalidInputError("interestRate must be a valid non-negative number.")
    term_months = max(1, int(safe_float(request.term_months, default=1)))

    applications = ApplicationRepository(db)
    loans = LoanRepository(db)
    try:
        application = applications.get_for_update(request.application_id)
        if application is None:
            raise NotFoundError(f"Application {request.application_id} not found")
        if application.status != "approved":
            raise InvalidInputError(f"Application {application.id} is {application.status}, not approved.")

        borrower = BorrowerRepository(db).get(application.borrower_id)
        if borrower is None:
            raise NotFoundError(f"Borrower {application.borrower_id} not found")

        interest_type = _pick(request.interest_type, application.interest_type, settings.default_interest_type)
        if interest_type not in INTEREST_TYPES:
            raise InvalidInputError(f"interestType must be one of {', '.join(INTEREST_TYPES)}.")

        totals = compute_totals(principal, interest_rate, term_months, interest_type)
        monthly_payment = to_money(_pick(request.monthly_payment, totals.monthly_payment))
        total_amount = to_money(_pick(request.total_amount, totals.total_amount))
        outstanding_balance = to_money(_pick(request.outstanding_balance, total_amount))

        disbursed_date = request.disbursed_date or today
        receipt_number = request.receipt_number or generate_receipt_number("DR")

        loan = loans.create(
            application_id=application.id,
            borrower_id=borrower.id,
            loan_type=application.loan_type,
            principal_amount=to_money(principal),
            interest_rate=interest_rate,
            term_months=term_months,
            monthly_payment=monthly_payment,
            total_amount=total_amount,
            outstanding_balance=outstanding_balance,
            disbursed_date=disbursed_date,
            disbursed_by=request.disbursed_by,
            next_due_date=request.next_due_date or add_months(disbursed_date, 1),
            status="active" if outstanding_balance > 0 else "completed",
            interest_type=interest_type,
            grace_period_days=int(
                _pick(request.grace_period_days, application.grace_period_days, settings.default_grace_period_days)
            ),
            penalty_rate=_pick(request.penalty_rate, application.penalty_rate, settings.default_penalty_rate),
            penalty_flat=_pick(request.penalty_flat, application.penalty_flat, settings.default_penalty_flat),
            disbursement_method=request.disbursement_method,
            reference_number=request.reference_number,
            receipt_number=receipt_number,
        )
        loans.upsert_receipt(
            loan,
            receipt_number,
            reference_number=request.reference_number,
            disbursement_method=request.disbursement_method,
            meta=request.meta,
        )
        application.status = "disbursed"
        db.commit()
    except (NotFoundError, InvalidInputError):
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        transaction_failures_counter.labels(operation="disbursement").inc()
        raise TransactionFailureError(f"Disbursement failed: {e}") from e

    disbursements_counter.inc()
    log_ledger_event(
        "loan_disbursed",
        loan_id=loan.id,
        application_id=application.id,
        borrower_id=borrower.id,
        principal_amount=loan.principal_amount,
        total_amount=loan.total_amount,
    )

    AuditLogRepository(db).log(
        action="DISBURSED",
        entity="LOAN",
        entity_id=loan.id,
        actor=request.disbursed_by,
        details=f"Loan disbursed to {borrower.full_name} for {loan.principal_amount}.",
    )
    NotificationRepository(db).emit_all(_disbursement_notifications(loan, borrower.full_name))
    commit_side_effects(db, loan_id=loan.id)

    refresh_credit_score_best_effort(db, borrower.id, today=today)
    return loan


def _disbursement_notifications(loan: Loan, borrower_name: str) -> List[NotificationSpec]:
    notifications = [
        NotificationSpec(
            target_role="borrower",
            type="loan_disbursed",
            title="Loan disbursed",
            message=f"Your loan has been disbursed. Amount: {loan.principal_amount}.",
            severity="info",
            reference_key=f"loan-{loan.id}-disbursed",
            borrower_id=loan.borrower_id,
            loan_id=loan.id,
        )
    ]
    for role in DISBURSEMENT_FANOUT_ROLES:
        notifications.append(
            NotificationSpec(
                target_role=role,
                type="loan_disbursed",
                title="Loan disbursed",
                message=f"Loan for {borrower_name} was disbursed.",
                severity="info",
                reference_key=f"loan-{loan.id}-{role.replace('_', '')}-disbursed",
                loan_id=loan.id,
            )
        )
    return notifications


def record_payment(db: Session, request: PaymentRequest, today: Optional[date] = None) -> Payment:
    """
    Post a repayment against a loan.

    In one transaction, with the loan row locked: compute the late fee from
    the loan's grace and penalty terms, insert the payment (late when past the
    grace period unless the caller sets a status) and decrement the balance,
    never below zero. A loan reaching zero is completed; otherwise its next
    due date moves one month past the due date just paid. A concurrent
    writer bumping the loan version aborts the whole posting.

    Raises:
        InvalidInputError: non-positive amount, unknown status, or closed loan
        NotFoundError: loan missing
        ConcurrentModificationError: loan changed underneath; retry
        TransactionFailureError: nothing was committed; safe to retry
    """
    today = today or date.today()

    amount = safe_float(request.amount)
    if amount <= 0:
        raise InvalidInputError("amount must be a valid number greater than 0.")
    if request.status is not None and request.status not in PAYMENT_STATUSES:
        raise InvalidInputError(f"status must be one of {', '.join(PAYMENT_STATUSES)}.")

    loans = LoanRepository(db)
    try:
        loan = loans.get_for_update(request.loan_id)
        if loan is None:
            raise NotFoundError(f"Loan {request.loan_id} not found")
        if loan.status in CLOSED_LOAN_STATUSES:
            raise InvalidInputError(f"Loan {loan.id} is {loan.status} and cannot take payments.")

        payment_date = request.payment_date or today
        due_date = request.due_date or loan.next_due_date
        fee = compute_late_fee(
            payment_date,
            due_date,
            loan.grace_period_days,
            loan.penalty_rate,
            loan.penalty_flat,
            amount,
        )
        status = request.status or ("late" if fee.days_late > 0 else "paid")

        payment = PaymentRepository(db).create(
            loan_id=loan.id,
            amount=to_money(amount),
            payment_date=payment_date,
            due_date=due_date,
            status=status,
            late_fee=fee.late_fee or None,
            received_by=request.received_by,
            receipt_number=request.receipt_number or generate_receipt_number("RC"),
        )

        new_balance = to_money(max(0.0, safe_float(loan.outstanding_balance) - amount))
        loan.outstanding_balance = new_balance
        if new_balance == 0:
            loan.status = "completed"
        elif due_date is not None:
            loan.next_due_date = add_months(due_date, 1)
        db.commit()
    except (NotFoundError, InvalidInputError):
        db.rollback()
        raise
    except StaleDataError as e:
        db.rollback()
        transaction_failures_counter.labels(operation="payment").inc()
        raise ConcurrentModificationError(f"Loan {request.loan_id} was modified concurrently") from e
    except SQLAlchemyError as e:
        db.rollback()
        transaction_failures_counter.labels(operation="payment").inc()
        raise TransactionFailureError(f"Payment failed: {e}") from e

    payments_counter.labels(status=status).inc()
    log_ledger_event(
        "payment_recorded",
        payment_id=payment.id,
        loan_id=loan.id,
        amount=payment.amount,
        status=status,
        days_late=fee.days_late,
        late_fee=fee.late_fee,
        outstanding_balance=loan.outstanding_balance,
    )

    borrower = BorrowerRepository(db).get(loan.borrower_id)
    borrower_name = borrower.full_name if borrower else loan.borrower_id
    AuditLogRepository(db).log(
        action="PAYMENT_RECEIVED",
        entity="PAYMENT",
        entity_id=payment.id,
        actor=request.received_by,
        details=f"Payment received from {borrower_name} for {payment.amount}.",
    )
    NotificationRepository(db).emit_all(_payment_notifications(payment, loan, borrower_name))
    commit_side_effects(db, payment_id=payment.id)

    refresh_credit_score_best_effort(db, loan.borrower_id, today=today)
    return payment


def _payment_notifications(payment: Payment, loan: Loan, borrower_name: str) -> List[NotificationSpec]:
    late = payment.status == "late"
    severity = "warning" if late else "info"
    notifications = [
        NotificationSpec(
            target_role="borrower",
            type="payment_received",
            title="Late payment received" if late else "Payment received",
            message=f"Payment of {payment.amount} was recorded{' (late)' if late else ''} for {borrower_name}.",
            severity=severity,
            reference_key=f"payment-{payment.id}-received",
            borrower_id=loan.borrower_id,
            loan_id=loan.id,
        )
    ]
    for role in PAYMENT_FANOUT_ROLES:
        notifications.append(
            NotificationSpec(
                target_role=role,
                type="payment_received",
                title="Payment received",
                message=f"{borrower_name} made a payment of {payment.amount}.",
                severity=severity,
                reference_key=f"payment-{payment.id}-{role}",
                loan_id=loan.id,
            )
        )
    return notifications
