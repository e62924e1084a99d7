"""Unit tests for the tiered credit limit"""

import pytest
from credit_ledger.domain.credit_limit import compute_credit_limit
from credit_ledger.domain.models import CreditLimitPolicy


def test_first_time_borrower_limited_by_income():
    limit = compute_credit_limit(20000, 5000, completed_loans=0, total_outstanding=0)

    assert limit.income_multiplier == 1.0
    assert limit.cap_by_income == 20000
    assert limit.cap_by_disposable == 90000
    assert limit.max_credit == 20000
    assert limit.available_credit == 20000


def test_multiplier_grows_per_completed_loan():
    limit = compute_credit_limit(20000, 5000, completed_loans=2, total_outstanding=0)

    assert limit.income_multiplier == 1.5
    assert limit.max_credit == 30000


def test_multiplier_capped_at_policy_maximum():
    limit = compute_credit_limit(20000, 5000, completed_loans=10, total_outstanding=0)

    assert limit.income_multiplier == 2.0
    assert limit.max_credit == 40000


def test_disposable_income_caps_high_spenders():
    limit = compute_credit_limit(10000, 9000, completed_loans=0, total_outstanding=0)

    assert limit.cap_by_disposable == 6000
    assert limit.max_credit == 6000


def test_outstanding_reduces_available_credit_never_below_zero():
    partly_used = compute_credit_limit(20000, 5000, completed_loans=0, total_outstanding=15000)
    over_limit = compute_credit_limit(20000, 5000, completed_loans=0, total_outstanding=50000)

    assert partly_used.available_credit == 5000
    assert over_limit.available_credit == 0


def test_expenses_above_income_give_no_credit():
    limit = compute_credit_limit(3000, 4000, completed_loans=3, total_outstanding=0)

    assert limit.max_credit == 0
    assert limit.available_credit == 0


def test_custom_policy():
    policy = CreditLimitPolicy(base_multiplier=2.0, step_multiplier=1.0, max_multiplier=3.0, disposable_multiplier=12.0)

    limit = compute_credit_limit(1000, 0, completed_loans=5, total_outstanding=0, policy=policy)

    assert limit.income_multiplier == 3.0
    assert limit.max_credit == pytest.approx(3000)


def test_malformed_figures_treated_as_zero():
    """Malformed input is treated as zero instead of raising"""
    limit = compute_credit_limit("n/a", None, completed_loans=None, total_outstanding=float("inf"))

    assert limit.max_credit == 0
    assert limit.available_credit == 0
    assert limit.completed_loans == 0
