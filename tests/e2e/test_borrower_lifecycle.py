"""
E2E tests walking borrowers through the full loan lifecycle over HTTP.

Personas:
- reliable: applies, is approved, repays in full, earns a higher limit
- delinquent: stops paying, is penalised daily and forwarded to collections
"""

import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from credit_ledger.infrastructure.database.models import LoanApplication, LoanPenalty, Notification


def _apply_and_disburse(client: TestClient, db: Session, borrower_id: str, amount: float, **terms) -> dict:
    application = client.post("/v1/applications", json={"borrower_id": borrower_id, "requested_amount": amount, **terms})
    assert application.status_code == 201

    # Approval is a back-office decision outside the ledger API
    db.get(LoanApplication, application.json()["application_id"]).status = "approved"
    db.commit()

    loan = client.post(
        "/v1/loans",
        json={
            "application_id": application.json()["application_id"],
            "principal_amount": amount,
            "interest_rate": 12,
            "term_months": 3,
            "disbursed_by": "cashier-1",
        },
    )
    assert loan.status_code == 201
    return loan.json()


@pytest.mark.integration
def test_reliable_borrower_repays_and_limit_grows(client: TestClient, db: Session, make_borrower):
    borrower = make_borrower(monthly_income=20000, monthly_expenses=5000, credit_score=700)

    limit_before = client.get(f"/v1/borrowers/{borrower.id}/credit-limit").json()
    assert limit_before["income_multiplier"] == 1.0

    loan = _apply_and_disburse(client, db, borrower.id, 6000)
    assert loan["status"] == "active"
    assert client.get(f"/v1/borrowers/{borrower.id}/credit-limit").json()["available_credit"] == pytest.approx(
        20000 - loan["outstanding_balance"]
    )

    balance = loan["outstanding_balance"]
    due = date.fromisoformat(loan["next_due_date"])
    while balance > 0:
        payment = client.post(
            "/v1/payments",
            json={
                "loan_id": loan["loan_id"],
                "amount": loan["monthly_payment"],
                "payment_date": due.isoformat(),
            },
        )
        assert payment.status_code == 201
        assert payment.json()["status"] == "paid"
        balance = payment.json()["outstanding_balance"]
        assert balance >= 0
        if payment.json()["loan_status"] == "completed":
            assert balance == 0
        else:
            due = date.fromisoformat(payment.json()["next_due_date"])

    limit_after = client.get(f"/v1/borrowers/{borrower.id}/credit-limit").json()
    assert limit_after["completed_loans"] == 1
    assert limit_after["income_multiplier"] == 1.25
    assert limit_after["available_credit"] == 25000

    score = client.get(f"/v1/borrowers/{borrower.id}/credit-score").json()
    assert score["factors"]["credit_utilization"] == 100


@pytest.mark.integration
def test_delinquent_borrower_forwarded_to_collections(
    client: TestClient, db: Session, make_borrower, collections_client
):
    borrower = make_borrower(monthly_income=20000, monthly_expenses=5000, credit_score=700)
    loan = _apply_and_disburse(client, db, borrower.id, 5000, grace_period_days=0, penalty_rate=0.5, penalty_flat=25)
    due = date.fromisoformat(loan["next_due_date"])

    early = client.post("/v1/delinquency/sweep", params={"as_of": (due + timedelta(days=61)).isoformat()}).json()
    assert early["penalties_applied"] == 1
    assert early["penalty_total"] == pytest.approx(round(loan["outstanding_balance"] * 0.005 + 25, 2))
    assert early["notifications_created"] == 3
    assert early["collections_created"] == 0

    late = client.post("/v1/delinquency/sweep", params={"as_of": (due + timedelta(days=181)).isoformat()}).json()
    assert late["penalties_applied"] == 1
    assert late["notifications_created"] == 6
    assert late["collections_created"] == 1
    assert late["new_collections_cases"] == [loan["loan_id"]]
    assert collections_client.payloads[0]["loan_id"] == loan["loan_id"]

    assert db.query(LoanPenalty).filter_by(loan_id=loan["loan_id"]).count() == 2
    assert db.query(Notification).filter(Notification.reference_key.like(f"loan-{loan['loan_id']}-delinquent-%")).count() == 9

    payment = client.post("/v1/payments", json={"loan_id": loan["loan_id"], "amount": 100})
    assert payment.status_code == 201
    assert payment.json()["loan_status"] == "defaulted"

    score = client.get(f"/v1/borrowers/{borrower.id}/credit-score").json()
    assert score["score"] < 700
