"""SQLAlchemy ORM models for the credit and loan ledger"""

import uuid
from datetime import date
from sqlalchemy import (
    Column,
    String,
    Float,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def generate_id(prefix: str) -> str:
    """Readable primary key, e.g. LN3f9a1c..."""
    return f"{prefix}{uuid.uuid4().hex[:16].upper()}"


class Borrower(Base):
    """Borrower profile; credit_score is a cache recomputed after every ledger mutation"""

    __tablename__ = "borrower"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("BR"))
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    monthly_income = Column(Float, nullable=False, default=0.0)
    monthly_expenses = Column(Float, nullable=False, default=0.0)
    credit_score = Column(Integer, nullable=False, default=650)
    kyc_status = Column(Text, nullable=True)  # pending | submitted | verified | rejected
    facial_image = Column(Text, nullable=True)
    id_image = Column(Text, nullable=True)
    registration_date = Column(Date, nullable=False, default=date.today)

    applications = relationship("LoanApplication", back_populates="borrower")
    loans = relationship("Loan", back_populates="borrower")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LoanApplication(Base):
    """Loan application with its eligibility snapshot and proposed terms"""

    __tablename__ = "loan_application"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("LA"))
    borrower_id = Column(String(20), ForeignKey("borrower.id"), nullable=False, index=True)
    loan_type = Column(Text, nullable=False, default="personal")
    purpose = Column(Text, nullable=True)
    requested_amount = Column(Float, nullable=False)
    collateral_value = Column(Float, nullable=True)
    credit_score = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    application_date = Column(Date, nullable=False, default=date.today)

    eligibility_status = Column(Text, nullable=True)
    eligibility_score = Column(Integer, nullable=True)
    income_ratio = Column(Float, nullable=True)
    debt_to_income = Column(Float, nullable=True)
    risk_tier = Column(Text, nullable=True)
    kyc_status = Column(Text, nullable=True)
    document_status = Column(Text, nullable=True)
    recommendation = Column(Text, nullable=True)

    approved_amount = Column(Float, nullable=True)
    interest_rate = Column(Float, nullable=True)
    term_months = Column(Integer, nullable=True)
    interest_type = Column(Text, nullable=False, default="compound")
    grace_period_days = Column(Integer, nullable=False, default=5)
    penalty_rate = Column(Float, nullable=False, default=0.5)
    penalty_flat = Column(Float, nullable=False, default=0.0)

    borrower = relationship("Borrower", back_populates="applications")


class Loan(Base):
    """Disbursed loan; outstanding_balance only moves through payments and penalties"""

    __tablename__ = "loan"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("LN"))
    application_id = Column(String(20), ForeignKey("loan_application.id"), nullable=False, unique=True)
    borrower_id = Column(String(20), ForeignKey("borrower.id"), nullable=False, index=True)
    loan_type = Column(Text, nullable=False, default="personal")
    principal_amount = Column(Float, nullable=False)
    interest_rate = Column(Float, nullable=False)
    term_months = Column(Integer, nullable=False)
    monthly_payment = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    outstanding_balance = Column(Float, nullable=False)
    disbursed_date = Column(Date, nullable=False)
    disbursed_by = Column(Text, nullable=True)
    next_due_date = Column(Date, nullable=True)
    status = Column(Text, nullable=False, default="active", index=True)
    interest_type = Column(Text, nullable=False, default="compound")
    grace_period_days = Column(Integer, nullable=False, default=5)
    penalty_rate = Column(Float, nullable=False, default=0.5)
    penalty_flat = Column(Float, nullable=False, default=0.0)

    # Denormalized from the disbursement receipt for reads
    disbursement_method = Column(Text, nullable=True)
    reference_number = Column(Text, nullable=True)
    receipt_number = Column(Text, nullable=True)

    # Optimistic concurrency: every UPDATE checks and bumps this
    version = Column(Integer, nullable=False, default=1)

    borrower = relationship("Borrower", back_populates="loans")
    receipt = relationship("DisbursementReceipt", back_populates="loan", uselist=False)
    payments = relationship("Payment", back_populates="loan", order_by="Payment.payment_date")
    penalties = relationship("LoanPenalty", back_populates="loan")

    __mapper_args__ = {"version_id_col": version}


class DisbursementReceipt(Base):
    """Source of truth for how and under which numbers a loan was paid out"""

    __tablename__ = "disbursement_receipt"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("DRC"))
    loan_id = Column(String(20), ForeignKey("loan.id", ondelete="CASCADE"), nullable=False, unique=True)
    receipt_number = Column(Text, nullable=False, unique=True)
    reference_number = Column(Text, nullable=True)
    disbursement_method = Column(Text, nullable=True)
    meta = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("Loan", back_populates="receipt")


class Payment(Base):
    """Append-only repayment record"""

    __tablename__ = "payment"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("PM"))
    loan_id = Column(String(20), ForeignKey("loan.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    payment_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(Text, nullable=False)  # paid | late | pending
    late_fee = Column(Float, nullable=True)
    received_by = Column(Text, nullable=True)
    receipt_number = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("Loan", back_populates="payments")


class LoanPenalty(Base):
    """Daily delinquency penalty; at most one per loan per calendar day"""

    __tablename__ = "loan_penalty"
    __table_args__ = (UniqueConstraint("loan_id", "penalty_date", name="uq_loan_penalty_loan_date"),)

    id = Column(String(20), primary_key=True, default=lambda: generate_id("PN"))
    loan_id = Column(String(20), ForeignKey("loan.id"), nullable=False, index=True)
    penalty_date = Column(Date, nullable=False)
    days_late = Column(Integer, nullable=False)
    amount = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("Loan", back_populates="penalties")


class CollectionsCase(Base):
    """Loan forwarded to collections; at most one per loan"""

    __tablename__ = "collections_case"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("CL"))
    loan_id = Column(String(20), ForeignKey("loan.id"), nullable=False, unique=True)
    borrower_id = Column(String(20), ForeignKey("borrower.id"), nullable=False)
    status = Column(Text, nullable=False, default="pending")
    reason = Column(Text, nullable=False)
    days_delinquent = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Notification(Base):
    """In-app notification; reference_key makes every emit idempotent"""

    __tablename__ = "notification"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("NT"))
    reference_key = Column(Text, nullable=False, unique=True)
    borrower_id = Column(String(20), nullable=True, index=True)
    loan_id = Column(String(20), nullable=True)
    target_role = Column(Text, nullable=True)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(Text, nullable=False, default="info")
    status = Column(Text, nullable=False, default="unread")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuditLog(Base):
    """Audit trail of ledger actions"""

    __tablename__ = "audit_log"

    id = Column(String(20), primary_key=True, default=lambda: generate_id("AL"))
    actor = Column(Text, nullable=False, default="System")
    action = Column(Text, nullable=False)
    entity = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=False)
    details = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
