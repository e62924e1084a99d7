"""Unit tests for loan amortization math"""

import math
import pytest
from credit_ledger.domain.amortization import compute_totals


def test_compound_reference_loan():
    """100k at 12% over 12 months"""
    totals = compute_totals(100000, 12, 12, "compound")

    assert totals.monthly_payment == pytest.approx(8884.88, abs=0.01)
    assert totals.total_amount == pytest.approx(106618.56, abs=0.02)


def test_compound_is_the_default():
    assert compute_totals(100000, 12, 12) == compute_totals(100000, 12, 12, "compound")


def test_unknown_interest_type_uses_compound():
    assert compute_totals(5000, 10, 6, "weird") == compute_totals(5000, 10, 6, "compound")


def test_simple_interest():
    """Flat 12% per year over 6 months adds 6%"""
    totals = compute_totals(10000, 12, 6, "simple")

    assert totals.total_amount == pytest.approx(10600.0)
    assert totals.monthly_payment == pytest.approx(10600.0 / 6)


def test_zero_rate_is_straight_line():
    totals = compute_totals(1200, 0, 12)

    assert totals.monthly_payment == pytest.approx(100.0)
    assert totals.total_amount == pytest.approx(1200.0)


@pytest.mark.parametrize("term", [0, -3, None])
def test_term_floored_to_one_month(term):
    totals = compute_totals(1000, 0, term)

    assert totals.monthly_payment == pytest.approx(1000.0)
    assert totals.total_amount == pytest.approx(1000.0)


@pytest.mark.parametrize("principal", [0, None, "abc", float("nan"), float("inf")])
def test_malformed_principal_yields_zero(principal):
    """Malformed input is treated as zero instead of raising"""
    totals = compute_totals(principal, 12, 12)

    assert totals.monthly_payment == 0
    assert totals.total_amount == 0


def test_malformed_rate_treated_as_zero():
    totals = compute_totals(1200, "n/a", 12)

    assert totals.total_amount == pytest.approx(1200.0)


@pytest.mark.parametrize("term", [1, 7, 36, 360])
@pytest.mark.parametrize("rate", [0, 0.5, 18, 99])
def test_compound_total_is_monthly_times_term(rate, term):
    totals = compute_totals(25000, rate, term)

    assert math.isfinite(totals.monthly_payment)
    assert totals.monthly_payment * term == pytest.approx(totals.total_amount)
    assert totals.total_amount >= 25000 - 1e-6
