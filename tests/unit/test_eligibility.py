"""Unit tests for application eligibility scoring"""

import pytest
from credit_ledger.domain.eligibility import (
    ELIGIBLE,
    INELIGIBLE,
    MANUAL_REVIEW,
    RECOMMENDATIONS,
    compute_eligibility,
    derive_kyc_status,
)
from credit_ledger.domain.models import EligibilityInput


def test_strong_borrower_without_debt_is_eligible_and_low_risk():
    """20k monthly income asking for 10k with a 700 score and no loans"""
    result = compute_eligibility(
        EligibilityInput(
            requested_amount=10000,
            monthly_income=20000,
            credit_score=700,
            total_outstanding=0,
            kyc_status="verified",
        )
    )

    assert result.eligibility_status == ELIGIBLE
    assert result.debt_to_income == 0
    assert result.eligibility_score == 78
    assert result.risk_tier == "low"
    assert result.income_ratio == pytest.approx(0.04)
    assert result.document_status == "complete"
    assert result.recommendation == RECOMMENDATIONS[ELIGIBLE]


def test_middling_score_goes_to_manual_review():
    result = compute_eligibility(
        EligibilityInput(requested_amount=10000, monthly_income=20000, credit_score=620, total_outstanding=0)
    )

    assert result.eligibility_status == MANUAL_REVIEW
    assert result.recommendation == RECOMMENDATIONS[MANUAL_REVIEW]


def test_low_credit_score_is_ineligible():
    result = compute_eligibility(
        EligibilityInput(requested_amount=1000, monthly_income=20000, credit_score=550, total_outstanding=0)
    )

    assert result.eligibility_status == INELIGIBLE


def test_high_debt_is_ineligible():
    result = compute_eligibility(
        EligibilityInput(requested_amount=1000, monthly_income=1000, credit_score=800, total_outstanding=9000)
    )

    assert result.debt_to_income == pytest.approx(0.75)
    assert result.eligibility_status == INELIGIBLE


def test_collateral_coverage_raises_score():
    base = EligibilityInput(requested_amount=10000, monthly_income=5000, credit_score=650, total_outstanding=0)
    covered = EligibilityInput(
        requested_amount=10000,
        monthly_income=5000,
        credit_score=650,
        total_outstanding=0,
        collateral_value=20000,
    )

    without = compute_eligibility(base).eligibility_score
    with_collateral = compute_eligibility(covered).eligibility_score

    # Full coverage adds 8 points over the 0.2 default sub-score
    assert with_collateral - without == 8


def test_no_income_maxes_out_ratios():
    result = compute_eligibility(
        EligibilityInput(requested_amount=1000, monthly_income=0, credit_score=800, total_outstanding=0)
    )

    assert result.income_ratio == 1
    assert result.debt_to_income == 1
    assert result.eligibility_status == INELIGIBLE


def test_unverified_kyc_marks_documents_missing():
    result = compute_eligibility(
        EligibilityInput(requested_amount=1000, monthly_income=20000, credit_score=700, total_outstanding=0)
    )

    assert result.kyc_status == "pending"
    assert result.document_status == "missing"


def test_malformed_numbers_treated_as_zero():
    """Malformed input is treated as zero instead of raising"""
    result = compute_eligibility(
        EligibilityInput(
            requested_amount="lots",
            monthly_income=float("nan"),
            credit_score=None,
            total_outstanding="?",
        )
    )

    assert 0 <= result.eligibility_score <= 100
    assert result.eligibility_status == INELIGIBLE
    assert result.risk_tier == "high"


@pytest.mark.parametrize(
    "kyc_status,facial,id_image,expected",
    [
        ("rejected", True, True, "rejected"),
        (None, True, True, "verified"),
        (None, True, False, "pending"),
        ("", False, False, "pending"),
    ],
)
def test_derive_kyc_status(kyc_status, facial, id_image, expected):
    assert derive_kyc_status(kyc_status, facial, id_image) == expected
