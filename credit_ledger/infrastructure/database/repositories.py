"""Data access layer for ledger entities"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from credit_ledger.domain.models import (
    BorrowerHistory,
    EligibilityResult,
    LoanRecord,
    NotificationSpec,
    PaymentRecord,
)
from credit_ledger.infrastructure.database.models import (
    AuditLog,
    Base,
    Borrower,
    CollectionsCase,
    DisbursementReceipt,
    Loan,
    LoanApplication,
    LoanPenalty,
    Notification,
    Payment,
)

OPEN_APPLICATION_STATUSES = ("pending", "under_review")
BALANCE_BEARING_STATUSES = ("active", "defaulted")


@dataclass
class UpsertResult:
    """Outcome of an insert-if-absent"""

    inserted: bool
    row: Optional[Any] = None


class KeyedUpsert:
    """
    Insert-if-absent keyed on a natural unique key.

    Looks the key up first and, when absent, inserts inside a savepoint so a
    concurrent writer winning the race surfaces as inserted=False instead of
    poisoning the surrounding transaction. Works on any backend with unique
    constraints and savepoints; no dialect-specific "ignore" syntax.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert_if_absent(self, model: Type[Base], key: Dict[str, Any], values: Dict[str, Any]) -> UpsertResult:
        existing = self.db.query(model).filter_by(**key).first()
        if existing is not None:
            return UpsertResult(inserted=False, row=existing)

        row = model(**key, **values)
        try:
            with self.db.begin_nested():
                self.db.add(row)
        except IntegrityError:
            return UpsertResult(inserted=False)
        return UpsertResult(inserted=True, row=row)


class BorrowerRepository:
    """Repository for borrowers and the aggregates read from their loans"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, borrower_id: str) -> Optional[Borrower]:
        return self.db.get(Borrower, borrower_id)

    def total_outstanding(self, borrower_id: str) -> float:
        """Outstanding balance across active and defaulted loans"""
        total = (
            self.db.query(func.coalesce(func.sum(Loan.outstanding_balance), 0.0))
            .filter(Loan.borrower_id == borrower_id, Loan.status.in_(BALANCE_BEARING_STATUSES))
            .scalar()
        )
        return float(total or 0.0)

    def completed_loan_count(self, borrower_id: str) -> int:
        return (
            self.db.query(func.count(Loan.id))
            .filter(Loan.borrower_id == borrower_id, Loan.status == "completed")
            .scalar()
        ) or 0

    def get_history(self, borrower: Borrower) -> BorrowerHistory:
        """Load all loans, payments joined to loans and application dates"""
        loans = self.db.query(Loan).filter(Loan.borrower_id == borrower.id).all()
        payments = (
            self.db.query(Payment)
            .join(Loan, Payment.loan_id == Loan.id)
            .filter(Loan.borrower_id == borrower.id)
            .all()
        )
        application_dates = [
            row.application_date
            for row in self.db.query(LoanApplication.application_date)
            .filter(LoanApplication.borrower_id == borrower.id)
            .all()
        ]

        return BorrowerHistory(
            monthly_income=borrower.monthly_income or 0.0,
            registration_date=borrower.registration_date,
            loans=[
                LoanRecord(
                    principal_amount=loan.principal_amount,
                    outstanding_balance=loan.outstanding_balance,
                    status=loan.status,
                )
                for loan in loans
            ],
            payments=[
                PaymentRecord(
                    amount=p.amount,
                    payment_date=p.payment_date,
                    due_date=p.due_date,
                    status=p.status,
                )
                for p in payments
            ],
            application_dates=application_dates,
        )

    def set_credit_score(self, borrower: Borrower, score: int) -> None:
        borrower.credit_score = score
        self.db.flush()


class ApplicationRepository:
    """Repository for loan applications"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, application_id: str) -> Optional[LoanApplication]:
        return self.db.get(LoanApplication, application_id)

    def get_for_update(self, application_id: str) -> Optional[LoanApplication]:
        """Fetch an application with a fresh read, holding its row lock until the transaction ends"""
        return (
            self.db.query(LoanApplication)
            .filter(LoanApplication.id == application_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def create(self, **fields: Any) -> LoanApplication:
        application = LoanApplication(**fields)
        self.db.add(application)
        self.db.flush()
        return application

    def open_for_borrower(self, borrower_id: str) -> List[LoanApplication]:
        return (
            self.db.query(LoanApplication)
            .filter(
                LoanApplication.borrower_id == borrower_id,
                LoanApplication.status.in_(OPEN_APPLICATION_STATUSES),
            )
            .all()
        )

    def apply_eligibility(self, application: LoanApplication, result: EligibilityResult) -> None:
        application.eligibility_status = result.eligibility_status
        application.eligibility_score = result.eligibility_score
        application.income_ratio = result.income_ratio
        application.debt_to_income = result.debt_to_income
        application.risk_tier = result.risk_tier
        application.kyc_status = result.kyc_status
        application.document_status = result.document_status
        application.recommendation = result.recommendation


class LoanRepository:
    """Repository for loans and their disbursement receipts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, loan_id: str) -> Optional[Loan]:
        return self.db.get(Loan, loan_id)

    def get_for_update(self, loan_id: str) -> Optional[Loan]:
        """
        Fetch a loan holding its row lock until the transaction ends.

        Backends without SELECT ... FOR UPDATE (SQLite) fall back on the
        version column check at flush time.
        """
        return (
            self.db.query(Loan)
            .filter(Loan.id == loan_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def list_active(self) -> List[Loan]:
        return self.db.query(Loan).filter(Loan.status == "active").order_by(Loan.id).all()

    def create(self, **fields: Any) -> Loan:
        loan = Loan(**fields)
        self.db.add(loan)
        self.db.flush()
        return loan

    def upsert_receipt(self, loan: Loan, receipt_number: str, **fields: Any) -> DisbursementReceipt:
        """One receipt per loan; re-disbursing the same loan overwrites its numbers"""
        receipt = self.db.query(DisbursementReceipt).filter(DisbursementReceipt.loan_id == loan.id).first()
        if receipt is None:
            receipt = DisbursementReceipt(loan_id=loan.id, receipt_number=receipt_number, **fields)
            self.db.add(receipt)
        else:
            receipt.receipt_number = receipt_number
            for name, value in fields.items():
                setattr(receipt, name, value)
        self.db.flush()
        return receipt


class PaymentRepository:
    """Repository for payments"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Payment:
        payment = Payment(**fields)
        self.db.add(payment)
        self.db.flush()
        return payment

    def last_payment_date(self, loan_id: str) -> Optional[date]:
        return self.db.query(func.max(Payment.payment_date)).filter(Payment.loan_id == loan_id).scalar()


class PenaltyRepository:
    """Repository for daily delinquency penalties"""

    def __init__(self, db: Session):
        self.db = db
        self.upsert = KeyedUpsert(db)

    def count_for_loan(self, loan_id: str) -> int:
        return self.db.query(func.count(LoanPenalty.id)).filter(LoanPenalty.loan_id == loan_id).scalar() or 0

    def record(self, loan_id: str, penalty_date: date, days_late: int, amount: float) -> UpsertResult:
        return self.upsert.insert_if_absent(
            LoanPenalty,
            key={"loan_id": loan_id, "penalty_date": penalty_date},
            values={"days_late": days_late, "amount": amount},
        )


class CollectionsRepository:
    """Repository for collections cases"""

    def __init__(self, db: Session):
        self.db = db
        self.upsert = KeyedUpsert(db)

    def open_case(self, loan: Loan, days_delinquent: int, reason: str) -> UpsertResult:
        return self.upsert.insert_if_absent(
            CollectionsCase,
            key={"loan_id": loan.id},
            values={
                "borrower_id": loan.borrower_id,
                "status": "pending",
                "reason": reason,
                "days_delinquent": days_delinquent,
            },
        )


class NotificationRepository:
    """Notification sink, idempotent on reference_key and never raising"""

    def __init__(self, db: Session):
        self.db = db
        self.upsert = KeyedUpsert(db)

    def emit(self, spec: NotificationSpec) -> bool:
        """Returns True only when a new notification row was written"""
        try:
            result = self.upsert.insert_if_absent(
                Notification,
                key={"reference_key": spec.reference_key},
                values={
                    "borrower_id": spec.borrower_id,
                    "loan_id": spec.loan_id,
                    "target_role": spec.target_role,
                    "type": spec.type,
                    "title": spec.title,
                    "message": spec.message,
                    "severity": spec.severity,
                },
            )
        except SQLAlchemyError as e:
            logging.warning(f"Notification not written: {e}", extra={"reference_key": spec.reference_key})
            return False
        return result.inserted

    def emit_all(self, specs: List[NotificationSpec]) -> int:
        return sum(1 for spec in specs if self.emit(spec))


class AuditLogRepository:
    """Audit sink; a failed write is logged and dropped"""

    def __init__(self, db: Session):
        self.db = db

    def log(self, action: str, entity: str, entity_id: str, details: str, actor: Optional[str] = None) -> None:
        try:
            with self.db.begin_nested():
                self.db.add(
                    AuditLog(
                        actor=actor or "System",
                        action=action,
                        entity=entity,
                        entity_id=entity_id,
                        details=details,
                    )
                )
        except SQLAlchemyError as e:
            logging.warning(
                f"Audit log write failed: {e}",
                extra={"action": action, "entity": entity, "entity_id": entity_id},
            )


def commit_side_effects(db: Session, **context: Any) -> None:
    """Commit audit and notification writes; a failure is logged, never raised"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.warning(f"Side-effect commit failed: {e}", extra=context)
