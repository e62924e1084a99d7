"""Credit score engine - core business logic for borrower risk state"""

from datetime import date
from typing import List

from credit_ledger.domain.models import (
    BorrowerHistory,
    CreditScoreFactors,
    CreditScoreResult,
    LoanRecord,
    PaymentRecord,
)
from credit_ledger.utils.date_utils import add_months, days_between, months_between
from credit_ledger.utils.numbers import clamp, round_half_up, safe_float

MIN_SCORE = 300
MAX_SCORE = 850

# Weighted 0-100 factors are stretched over the 550 point range
SCORE_SCALE = 5.5

WEIGHTS = {
    "payment_history": 0.35,
    "credit_utilization": 0.30,
    "credit_age": 0.15,
    "total_debt": 0.15,
    "recent_inquiries": 0.05,
}

DEFAULTED_STATUSES = ("defaulted", "written_off")

NO_HISTORY_ON_TIME_RATIO = 0.6
CREDIT_AGE_HORIZON_MONTHS = 120
INQUIRY_WINDOW_MONTHS = 6


def payment_history_score(payments: List[PaymentRecord], loans: List[LoanRecord]) -> float:
    """
    Payment history factor (0-100).

    A payment is on time when it was made on or before its due date, or it
    was recorded as paid. Average lateness is taken over late payments and
    costs half a point per day (capped at 30); each defaulted or written-off
    loan costs 20 points (capped at 40).
    """
    days_late = [
        days_between(p.payment_date, p.due_date, ceil=False) if p.payment_date and p.due_date else 0
        for p in payments
    ]

    total = len(payments)
    on_time = sum(1 for p, late in zip(payments, days_late) if late <= 0 or p.status == "paid")
    late_count = sum(1 for p, late in zip(payments, days_late) if late > 0 or p.status == "late")
    late_days_total = sum(late for late in days_late if late > 0)
    avg_late_days = late_days_total / late_count if late_count else 0.0

    on_time_ratio = on_time / total if total else NO_HISTORY_ON_TIME_RATIO
    late_severity_penalty = clamp(avg_late_days * 0.5, 0, 30)
    defaulted_count = sum(1 for loan in loans if loan.status in DEFAULTED_STATUSES)
    default_penalty = clamp(defaulted_count * 20, 0, 40)

    return clamp(on_time_ratio * 100 - late_severity_penalty - default_penalty, 0, 100)


def utilization_score(loans: List[LoanRecord]) -> float:
    """Share of all principal ever issued that has been repaid (0-100)"""
    total_principal = sum(safe_float(loan.principal_amount) for loan in loans)
    total_outstanding = sum(safe_float(loan.outstanding_balance) for loan in loans)
    utilization = total_outstanding / total_principal if total_principal else 0.0
    return clamp(100 - utilization * 100, 0, 100)


def credit_age_score(registration_date: date | None, today: date) -> float:
    """Months on the books scaled linearly against a ten-year horizon"""
    months_active = months_between(today, registration_date or today)
    return clamp(months_active / CREDIT_AGE_HORIZON_MONTHS * 100, 0, 100)


def total_debt_score(loans: List[LoanRecord], monthly_income: float) -> float:
    annual_income = safe_float(monthly_income) * 12
    total_outstanding = sum(safe_float(loan.outstanding_balance) for loan in loans)
    debt_to_income = total_outstanding / annual_income if annual_income else 1.0
    return clamp(100 - debt_to_income * 80, 0, 100)


def recent_inquiries_score(application_dates: List[date | None], today: date) -> float:
    """Each application in the trailing six months costs 10 points"""
    window_start = add_months(today, -INQUIRY_WINDOW_MONTHS)
    recent = sum(1 for applied in application_dates if applied and applied >= window_start)
    return clamp(100 - recent * 10, 0, 100)


def compute_credit_score(history: BorrowerHistory, today: date | None = None) -> CreditScoreResult:
    """
    Main entry point: weighted credit score in [300, 850] with factor breakdown.

    Scoring weights:
    - 35%: Payment history
    - 30%: Credit utilization
    - 15%: Credit age
    - 15%: Total debt relative to income
    - 5%:  Recent inquiries

    Pure function; callers persist the score on the borrower.
    """
    today = today or date.today()

    factors = {
        "payment_history": payment_history_score(history.payments, history.loans),
        "credit_utilization": utilization_score(history.loans),
        "credit_age": credit_age_score(history.registration_date, today),
        "total_debt": total_debt_score(history.loans, history.monthly_income),
        "recent_inquiries": recent_inquiries_score(history.application_dates, today),
    }

    weighted = sum(factors[name] * weight for name, weight in WEIGHTS.items())
    score = int(clamp(round_half_up(MIN_SCORE + weighted * SCORE_SCALE), MIN_SCORE, MAX_SCORE))

    return CreditScoreResult(
        score=score,
        factors=CreditScoreFactors(**{name: round_half_up(value) for name, value in factors.items()}),
    )
