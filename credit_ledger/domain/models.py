"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


@dataclass
class LoanTotals:
    """Amortization output persisted on the loan at disbursement"""

    monthly_payment: float
    total_amount: float


@dataclass
class LateFee:
    """Late fee owed for a payment and how late it was"""

    late_fee: float
    days_late: int


@dataclass
class EligibilityInput:
    """Borrower aggregates and application figures used by the eligibility scorer"""

    requested_amount: float
    monthly_income: float
    credit_score: float
    total_outstanding: float
    kyc_status: str = "pending"
    collateral_value: Optional[float] = None


@dataclass
class EligibilityResult:
    """Decision record stored on a loan application"""

    eligibility_status: str  # eligible | manual_review | ineligible
    eligibility_score: int
    income_ratio: float
    debt_to_income: float
    risk_tier: str  # low | medium | high
    kyc_status: str
    document_status: str  # complete | missing
    recommendation: str


@dataclass
class LoanRecord:
    """Loan fields the credit score engine reads"""

    principal_amount: float
    outstanding_balance: float
    status: str


@dataclass
class PaymentRecord:
    """Payment fields the credit score engine reads"""

    amount: float
    payment_date: Optional[date]
    due_date: Optional[date]
    status: str


@dataclass
class BorrowerHistory:
    """Full borrower history: loans, payments joined to loans, applications"""

    monthly_income: float
    registration_date: Optional[date]
    loans: List[LoanRecord] = field(default_factory=list)
    payments: List[PaymentRecord] = field(default_factory=list)
    application_dates: List[Optional[date]] = field(default_factory=list)


@dataclass
class CreditScoreFactors:
    """Rounded 0-100 sub-scores shown next to the credit score"""

    payment_history: int
    credit_utilization: int
    credit_age: int
    total_debt: int
    recent_inquiries: int


@dataclass
class CreditScoreResult:
    """Output of the credit score engine"""

    score: int
    factors: CreditScoreFactors


@dataclass
class CreditLimitPolicy:
    """Multipliers for the tiered credit ceiling"""

    base_multiplier: float = 1.0
    step_multiplier: float = 0.25
    max_multiplier: float = 2.0
    disposable_multiplier: float = 6.0


@dataclass
class CreditLimit:
    """Tiered credit ceiling and what is still available under it"""

    monthly_income: float
    monthly_expenses: float
    completed_loans: int
    income_multiplier: float
    cap_by_income: float
    cap_by_disposable: float
    max_credit: float
    total_outstanding: float
    available_credit: float


@dataclass
class NotificationSpec:
    """A notification to emit, idempotent on reference_key"""

    target_role: str
    type: str
    title: str
    message: str
    severity: str
    reference_key: str
    borrower_id: Optional[str] = None
    loan_id: Optional[str] = None


@dataclass
class SweepResult:
    """Counts of effects produced by one delinquency sweep run"""

    loans_scanned: int = 0
    loans_late: int = 0
    penalties_applied: int = 0
    penalty_total: float = 0.0
    notifications_created: int = 0
    collections_created: int = 0
    loans_defaulted: int = 0
    failures: int = 0
    new_collections_cases: List[str] = field(default_factory=list)
    stages: Dict[str, int] = field(default_factory=dict)  # late, delinquent_<threshold>, defaulted


@dataclass
class ApplicationRequest:
    """Loan application submitted by or for a borrower"""

    borrower_id: str
    requested_amount: float
    loan_type: str = "personal"
    purpose: Optional[str] = None
    collateral_value: Optional[float] = None
    credit_score: Optional[float] = None
    application_date: Optional[date] = None
    interest_type: Optional[str] = None
    grace_period_days: Optional[int] = None
    penalty_rate: Optional[float] = None
    penalty_flat: Optional[float] = None


@dataclass
class DisbursementRequest:
    """Payout of an approved application"""

    application_id: str
    principal_amount: float
    interest_rate: float
    term_months: int
    disbursed_by: Optional[str] = None
    disbursed_date: Optional[date] = None
    next_due_date: Optional[date] = None
    interest_type: Optional[str] = None
    grace_period_days: Optional[int] = None
    penalty_rate: Optional[float] = None
    penalty_flat: Optional[float] = None
    monthly_payment: Optional[float] = None
    total_amount: Optional[float] = None
    outstanding_balance: Optional[float] = None
    disbursement_method: Optional[str] = None
    reference_number: Optional[str] = None
    receipt_number: Optional[str] = None
    meta: Optional[str] = None


@dataclass
class PaymentRequest:
    """Repayment received against a loan"""

    loan_id: str
    amount: float
    payment_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[str] = None
    received_by: Optional[str] = None
    receipt_number: Optional[str] = None
