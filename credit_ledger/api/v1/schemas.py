"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Literal, Optional

InterestType = Literal["simple", "compound"]


class QuoteRequest(BaseModel):
    """Request body for POST /v1/quotes"""

    principal: float = Field(..., description="Principal amount")
    annual_rate_percent: float = Field(0.0, ge=0, description="Annual interest rate in percent")
    term_months: int = Field(1, description="Loan term; values below 1 are treated as 1")
    interest_type: InterestType = "compound"


class QuoteResponse(BaseModel):
    monthly_payment: float
    total_amount: float


class LateFeeRequest(BaseModel):
    """Request body for POST /v1/late-fee"""

    payment_date: date
    due_date: date
    grace_period_days: int = 0
    penalty_rate_percent: float = 0.0
    penalty_flat: float = 0.0
    base_amount: float = 0.0


class LateFeeResponse(BaseModel):
    late_fee: float
    days_late: int


class ApplicationCreateRequest(BaseModel):
    """Request body for POST /v1/applications"""

    borrower_id: str = Field(..., min_length=1)
    requested_amount: float = Field(..., gt=0)
    loan_type: str = "personal"
    purpose: Optional[str] = None
    collateral_value: Optional[float] = Field(None, ge=0)
    credit_score: Optional[int] = Field(None, ge=300, le=850)
    interest_type: Optional[InterestType] = None
    grace_period_days: Optional[int] = Field(None, ge=0)
    penalty_rate: Optional[float] = Field(None, ge=0)
    penalty_flat: Optional[float] = Field(None, ge=0)


class EligibilityResponse(BaseModel):
    eligibility_status: str
    eligibility_score: int
    income_ratio: float
    debt_to_income: float
    risk_tier: str
    kyc_status: str
    document_status: str
    recommendation: str


class ApplicationResponse(BaseModel):
    application_id: str
    borrower_id: str
    requested_amount: float
    status: str
    eligibility: EligibilityResponse


class CreditScoreFactorsSchema(BaseModel):
    payment_history: int
    credit_utilization: int
    credit_age: int
    total_debt: int
    recent_inquiries: int


class CreditScoreResponse(BaseModel):
    borrower_id: str
    score: int
    factors: CreditScoreFactorsSchema


class CreditLimitResponse(BaseModel):
    borrower_id: str
    monthly_income: float
    monthly_expenses: float
    completed_loans: int
    income_multiplier: float
    cap_by_income: float
    cap_by_disposable: float
    max_credit: float
    total_outstanding: float
    available_credit: float


class DisbursementCreateRequest(BaseModel):
    """Request body for POST /v1/loans"""

    application_id: str = Field(..., min_length=1)
    principal_amount: float = Field(..., gt=0)
    interest_rate: float = Field(..., ge=0)
    term_months: int = Field(..., ge=1)
    disbursed_by: Optional[str] = None
    disbursed_date: Optional[date] = None
    next_due_date: Optional[date] = None
    interest_type: Optional[InterestType] = None
    grace_period_days: Optional[int] = Field(None, ge=0)
    penalty_rate: Optional[float] = Field(None, ge=0)
    penalty_flat: Optional[float] = Field(None, ge=0)
    monthly_payment: Optional[float] = Field(None, ge=0)
    total_amount: Optional[float] = Field(None, ge=0)
    outstanding_balance: Optional[float] = Field(None, ge=0)
    disbursement_method: Optional[str] = None
    reference_number: Optional[str] = None
    receipt_number: Optional[str] = None
    meta: Optional[str] = None


class LoanResponse(BaseModel):
    loan_id: str
    application_id: str
    borrower_id: str
    principal_amount: float
    monthly_payment: float
    total_amount: float
    outstanding_balance: float
    next_due_date: Optional[date]
    status: str
    receipt_number: Optional[str]


class PaymentCreateRequest(BaseModel):
    """Request body for POST /v1/payments"""

    loan_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    payment_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[Literal["paid", "late", "pending"]] = None
    received_by: Optional[str] = None
    receipt_number: Optional[str] = None


class PaymentResponse(BaseModel):
    payment_id: str
    loan_id: str
    amount: float
    status: str
    late_fee: float
    receipt_number: str
    outstanding_balance: float
    loan_status: str
    next_due_date: Optional[date]


class SweepResponse(BaseModel):
    """Response for POST /v1/delinquency/sweep"""

    loans_scanned: int
    loans_late: int
    penalties_applied: int
    penalty_total: float
    notifications_created: int
    collections_created: int
    loans_defaulted: int
    failures: int
    reminders_created: int
    new_collections_cases: List[str]
    stages: Dict[str, int] = Field(default_factory=dict)
