"""Eligibility scoring for a new loan application"""

from credit_ledger.domain.models import EligibilityInput, EligibilityResult
from credit_ledger.utils.numbers import clamp, round_half_up, safe_float

ELIGIBLE = "eligible"
INELIGIBLE = "ineligible"
MANUAL_REVIEW = "manual_review"

DEFAULT_COLLATERAL_SCORE = 0.2

RECOMMENDATIONS = {
    ELIGIBLE: "Eligible based on credit score and income ratio. Proceed with standard underwriting.",
    INELIGIBLE: "Ineligible due to risk indicators. Consider rejection or require strong collateral.",
    MANUAL_REVIEW: "Requires manual review for risk assessment.",
}


def derive_kyc_status(kyc_status: str | None, has_facial_image: bool, has_id_image: bool) -> str:
    """Explicit KYC status wins; otherwise both images on file count as verified"""
    if kyc_status:
        return kyc_status
    return "verified" if has_facial_image and has_id_image else "pending"


def compute_eligibility(inputs: EligibilityInput) -> EligibilityResult:
    """
    Score an application from 0-100 and classify it.

    Scoring weights (each sub-score normalized to [0, 1]):
    - 50%: Credit score, (score - 300) / 550
    - 20%: Income, 1 - requested / annual income
    - 20%: Debt-to-income, 1 - outstanding / annual income
    - 10%: Collateral coverage, collateral / requested (0.2 when none pledged)

    Status rules run in a fixed order with no early exit, so the ineligible
    rule overrides an eligible result when both match.

    Malformed numbers are treated as zero rather than rejected.
    """
    requested = safe_float(inputs.requested_amount)
    monthly_income = safe_float(inputs.monthly_income)
    total_outstanding = safe_float(inputs.total_outstanding)
    credit_score = safe_float(inputs.credit_score)
    collateral = safe_float(inputs.collateral_value)

    annual_income = monthly_income * 12
    income_ratio = requested / annual_income if annual_income > 0 else 1.0
    debt_to_income = total_outstanding / annual_income if annual_income > 0 else 1.0

    credit_component = clamp((credit_score - 300) / 550, 0, 1)
    income_component = clamp(1 - income_ratio, 0, 1)
    dti_component = clamp(1 - debt_to_income, 0, 1)
    if collateral:
        # Collateral pledged against a zero request covers it fully
        collateral_component = clamp(collateral / requested, 0, 1) if requested else 1.0
    else:
        collateral_component = DEFAULT_COLLATERAL_SCORE

    raw_score = (
        credit_component * 0.5
        + income_component * 0.2
        + dti_component * 0.2
        + collateral_component * 0.1
    ) * 100
    eligibility_score = round_half_up(clamp(raw_score, 0, 100))

    if eligibility_score >= 75 and debt_to_income <= 0.5:
        risk_tier = "low"
    elif eligibility_score >= 55:
        risk_tier = "medium"
    else:
        risk_tier = "high"

    eligibility_status = MANUAL_REVIEW
    if credit_score >= 650 and debt_to_income <= 0.5:
        eligibility_status = ELIGIBLE
    if credit_score < 580 or debt_to_income > 0.7:
        eligibility_status = INELIGIBLE

    kyc_status = inputs.kyc_status or "pending"
    document_status = "complete" if kyc_status == "verified" else "missing"

    return EligibilityResult(
        eligibility_status=eligibility_status,
        eligibility_score=eligibility_score,
        income_ratio=round(income_ratio, 2),
        debt_to_income=round(debt_to_income, 2),
        risk_tier=risk_tier,
        kyc_status=kyc_status,
        document_status=document_status,
        recommendation=RECOMMENDATIONS[eligibility_status],
    )
