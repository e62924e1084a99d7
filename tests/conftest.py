"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Any, Callable, Dict, Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from credit_ledger.api.main import create_app
from credit_ledger.api.dependencies import get_collections_client
from credit_ledger.infrastructure.database.models import Base, Borrower, Loan, LoanApplication
from credit_ledger.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


class RecordingCollectionsClient:
    """Stands in for the collections webhook; keeps every payload it is handed"""

    def __init__(self):
        self.payloads: List[Dict[str, Any]] = []

    async def forward_case(self, payload: Dict[str, Any]) -> bool:
        self.payloads.append(payload)
        return True


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def collections_client() -> RecordingCollectionsClient:
    return RecordingCollectionsClient()


@pytest.fixture
def client(db: Session, collections_client: RecordingCollectionsClient) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_collections_client] = lambda: collections_client
    return TestClient(app)


@pytest.fixture
def make_borrower(db: Session) -> Callable[..., Borrower]:
    """Factory for a KYC-verified borrower with income on file"""

    def _make(**overrides: Any) -> Borrower:
        fields = {
            "first_name": "Ana",
            "last_name": "Reyes",
            "email": "ana@example.com",
            "monthly_income": 20000.0,
            "monthly_expenses": 5000.0,
            "credit_score": 700,
            "kyc_status": "verified",
            "registration_date": date.today() - timedelta(days=365),
        }
        fields.update(overrides)
        borrower = Borrower(**fields)
        db.add(borrower)
        db.commit()
        return borrower

    return _make


@pytest.fixture
def make_application(db: Session) -> Callable[..., LoanApplication]:
    """Factory for an approved application ready for disbursement"""

    def _make(borrower: Borrower, **overrides: Any) -> LoanApplication:
        fields = {
            "borrower_id": borrower.id,
            "requested_amount": 10000.0,
            "credit_score": borrower.credit_score,
            "status": "approved",
            "application_date": date.today() - timedelta(days=30),
            "interest_type": "compound",
            "grace_period_days": 5,
            "penalty_rate": 0.5,
            "penalty_flat": 0.0,
        }
        fields.update(overrides)
        application = LoanApplication(**fields)
        db.add(application)
        db.commit()
        return application

    return _make


@pytest.fixture
def make_loan(db: Session, make_application: Callable[..., LoanApplication]) -> Callable[..., Loan]:
    """Factory for an active loan written straight to the ledger"""

    def _make(borrower: Borrower, **overrides: Any) -> Loan:
        application = make_application(borrower, status="disbursed")
        fields = {
            "application_id": application.id,
            "borrower_id": borrower.id,
            "principal_amount": 10000.0,
            "interest_rate": 12.0,
            "term_months": 12,
            "monthly_payment": 888.49,
            "total_amount": 10661.85,
            "outstanding_balance": 10661.85,
            "disbursed_date": date.today() - timedelta(days=30),
            "next_due_date": date.today(),
            "status": "active",
            "interest_type": "compound",
            "grace_period_days": 5,
            "penalty_rate": 0.5,
            "penalty_flat": 0.0,
            "receipt_number": "DR-TEST",
        }
        fields.update(overrides)
        loan = Loan(**fields)
        db.add(loan)
        db.commit()
        return loan

    return _make
