"""Amortization math for loan disbursement"""

from typing import Any

from credit_ledger.domain.models import LoanTotals
from credit_ledger.utils.numbers import safe_float

SIMPLE = "simple"
COMPOUND = "compound"
INTEREST_TYPES = (SIMPLE, COMPOUND)


def compute_totals(
    principal: Any,
    annual_rate_percent: Any,
    term_months: Any,
    interest_type: str = COMPOUND,
) -> LoanTotals:
    """
    Compute the monthly payment and total payable for a loan.

    Requirements:
    - term_months is floored to 1
    - zero or non-finite principal yields 0/0
    - simple: total = P * (1 + rate/100 * months/12), paid in equal months
    - compound (default, and for any unrecognised type): standard annuity
      formula on the monthly rate, straight-line when the rate is zero

    Example:
        compute_totals(100000, 12, 12) -> monthly 8884.88, total 106618.55
    """
    principal = safe_float(principal)
    rate = safe_float(annual_rate_percent)
    months = max(1, int(safe_float(term_months, default=1)))

    if not principal:
        return LoanTotals(monthly_payment=0.0, total_amount=0.0)

    if interest_type == SIMPLE:
        total_amount = principal * (1 + (rate / 100) * (months / 12))
        return LoanTotals(monthly_payment=total_amount / months, total_amount=total_amount)

    monthly_rate = rate / 100 / 12
    if monthly_rate == 0:
        return LoanTotals(monthly_payment=principal / months, total_amount=principal)

    factor = (1 + monthly_rate) ** months
    monthly_payment = principal * monthly_rate * factor / (factor - 1)
    return LoanTotals(monthly_payment=monthly_payment, total_amount=monthly_payment * months)
