"""Tiered credit ceiling used to gate new applications"""

from typing import Any

from credit_ledger.domain.models import CreditLimit, CreditLimitPolicy
from credit_ledger.utils.numbers import clamp, safe_float, to_money


def compute_credit_limit(
    monthly_income: Any,
    monthly_expenses: Any,
    completed_loans: int,
    total_outstanding: Any,
    policy: CreditLimitPolicy | None = None,
) -> CreditLimit:
    """
    Compute the borrower's credit ceiling and what remains available.

    max_credit is the lower of two caps:
    - income cap: monthly income x income multiplier, where the multiplier
      grows one step per fully repaid loan up to the policy maximum
    - disposable cap: (income - expenses) x disposable multiplier

    available_credit = max(0, max_credit - outstanding on active/defaulted loans)
    """
    policy = policy or CreditLimitPolicy()

    income = to_money(monthly_income)
    expenses = to_money(monthly_expenses)
    outstanding = to_money(total_outstanding)
    disposable = max(0.0, income - expenses)

    tier = max(0, int(completed_loans or 0))
    income_multiplier = clamp(
        policy.base_multiplier + tier * policy.step_multiplier,
        policy.base_multiplier,
        policy.max_multiplier,
    )

    cap_by_income = max(0.0, income * income_multiplier)
    cap_by_disposable = max(0.0, disposable * safe_float(policy.disposable_multiplier))
    max_credit = to_money(min(cap_by_income, cap_by_disposable))
    available_credit = to_money(max(0.0, max_credit - outstanding))

    return CreditLimit(
        monthly_income=income,
        monthly_expenses=expenses,
        completed_loans=tier,
        income_multiplier=to_money(income_multiplier),
        cap_by_income=to_money(cap_by_income),
        cap_by_disposable=to_money(cap_by_disposable),
        max_credit=max_credit,
        total_outstanding=outstanding,
        available_credit=available_credit,
    )
