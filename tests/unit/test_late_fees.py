"""Unit tests for late fees and daily delinquency penalties"""

import pytest
from datetime import date, datetime
from credit_ledger.domain.late_fees import compute_daily_penalty, compute_late_fee


def test_late_fee_after_grace_period():
    """Paid on the 10th, due the 1st, 5 grace days: 4 days late"""
    fee = compute_late_fee(date(2024, 3, 10), date(2024, 3, 1), 5, 1, 50, 10000)

    assert fee.days_late == 4
    assert fee.late_fee == pytest.approx(450.00)


def test_no_fee_within_grace_period():
    fee = compute_late_fee(date(2024, 3, 6), date(2024, 3, 1), 5, 1, 50, 10000)

    assert fee.days_late == 0
    assert fee.late_fee == 0


def test_no_fee_when_paid_early():
    fee = compute_late_fee(date(2024, 2, 20), date(2024, 3, 1), 0, 1, 50, 10000)

    assert fee.days_late == 0
    assert fee.late_fee == 0


def test_partial_day_rounds_up():
    fee = compute_late_fee(datetime(2024, 3, 2, 1, 0), date(2024, 3, 1), 0, 0, 10, 0)

    assert fee.days_late == 2
    assert fee.late_fee == pytest.approx(10.0)


def test_flat_only_fee():
    fee = compute_late_fee(date(2024, 3, 3), date(2024, 3, 1), 0, 0, 25, 10000)

    assert fee.days_late == 2
    assert fee.late_fee == pytest.approx(25.0)


def test_fee_rounded_to_cents():
    fee = compute_late_fee(date(2024, 3, 2), date(2024, 3, 1), 0, 0.333, 0, 1000)

    assert fee.late_fee == pytest.approx(3.33)


def test_malformed_terms_treated_as_zero():
    """Malformed input is treated as zero instead of raising"""
    fee = compute_late_fee(date(2024, 3, 4), date(2024, 3, 1), "x", None, "y", float("nan"))

    assert fee.days_late == 3
    assert fee.late_fee == 0


def test_daily_penalty_charges_flat_fee_on_first_penalty_only():
    first = compute_daily_penalty(1000, 0.5, 20, prior_penalty_count=0)
    later = compute_daily_penalty(1000, 0.5, 20, prior_penalty_count=3)

    assert first == pytest.approx(25.0)
    assert later == pytest.approx(5.0)


def test_daily_penalty_zero_when_nothing_to_charge():
    assert compute_daily_penalty(0, 0.5, 0, prior_penalty_count=0) == 0
    assert compute_daily_penalty(1000, 0, 0, prior_penalty_count=0) == 0


def test_half_cent_rounds_up():
    """12.5 at 1% is 0.125; money rounds half a cent up, not to even"""
    fee = compute_late_fee(date(2024, 1, 2), date(2024, 1, 1), 0, 1, 0, 12.5)

    assert fee.late_fee == 0.13
    assert compute_daily_penalty(12.5, 1, 0, prior_penalty_count=1) == 0.13
