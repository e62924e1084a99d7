"""Late fee and daily delinquency penalty computation"""

from datetime import date
from typing import Any, Optional

from credit_ledger.domain.models import LateFee
from credit_ledger.utils.date_utils import DateLike, add_days, days_between
from credit_ledger.utils.numbers import safe_float, to_money


def compute_late_fee(
    payment_date: Optional[DateLike],
    due_date: Optional[DateLike],
    grace_period_days: Any,
    penalty_rate_percent: Any,
    penalty_flat: Any,
    base_amount: Any,
) -> LateFee:
    """
    Late fee for a payment made on payment_date against due_date.

    effective_due = due_date + grace days; days late is the ceiling of the
    elapsed days past effective_due. Fee is rate% of base_amount per day late
    plus the flat fee, rounded to cents. A missing date means today.
    """
    paid = payment_date or date.today()
    due = due_date or date.today()

    effective_due = add_days(due, int(safe_float(grace_period_days)))
    days_late = max(0, days_between(paid, effective_due, ceil=True))
    if days_late == 0:
        return LateFee(late_fee=0.0, days_late=0)

    rate = safe_float(penalty_rate_percent) / 100
    flat = safe_float(penalty_flat)
    base = safe_float(base_amount)
    late_fee = max(0.0, base * rate * days_late + flat)
    return LateFee(late_fee=to_money(late_fee), days_late=days_late)


def compute_daily_penalty(
    outstanding_balance: Any,
    penalty_rate_percent: Any,
    penalty_flat: Any,
    prior_penalty_count: int,
) -> float:
    """
    Penalty the sweep accrues for one delinquent day.

    The rate applies to the outstanding balance every day; the flat fee is
    charged only on the loan's first ever penalty.
    """
    rate = safe_float(penalty_rate_percent) / 100
    flat = safe_float(penalty_flat)
    balance = safe_float(outstanding_balance)

    amount = 0.0
    if rate > 0 and balance > 0:
        amount += balance * rate
    if prior_penalty_count == 0 and flat > 0:
        amount += flat
    return to_money(amount)
