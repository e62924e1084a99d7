"""POST /v1/delinquency/sweep - run the daily delinquency pass"""

import time
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from credit_ledger.api.dependencies import get_collections_client, get_request_id
from credit_ledger.api.v1.schemas import SweepResponse
from credit_ledger.infrastructure.clients.collections import CollectionsClient
from credit_ledger.infrastructure.database.repositories import LoanRepository
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.delinquency import run_delinquency_sweep, run_payment_reminders

router = APIRouter()


@router.post("/delinquency/sweep", response_model=SweepResponse)
def sweep(
    background_tasks: BackgroundTasks,
    request: Request,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
    collections_client: CollectionsClient = Depends(get_collections_client),
):
    """
    Run the delinquency sweep followed by payment reminders.

    Newly opened collections cases are forwarded to the collections service
    in the background; the ledger state is final before that happens.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    today = as_of or date.today()

    result = run_delinquency_sweep(db, today=today)
    reminders = run_payment_reminders(db, today=today)

    loans = LoanRepository(db)
    for loan_id in result.new_collections_cases:
        loan = loans.get(loan_id)
        background_tasks.add_task(
            collections_client.forward_case,
            {
                "loan_id": loan_id,
                "borrower_id": loan.borrower_id if loan else None,
                "outstanding_balance": loan.outstanding_balance if loan else None,
                "as_of": today.isoformat(),
            },
        )

    logging.info(
        "Sweep request completed",
        extra={
            "request_id": request_id,
            "reminders_created": reminders,
            "duration_ms": (time.time() - start_time) * 1000,
        },
    )

    return SweepResponse(
        loans_scanned=result.loans_scanned,
        loans_late=result.loans_late,
        penalties_applied=result.penalties_applied,
        penalty_total=result.penalty_total,
        notifications_created=result.notifications_created,
        collections_created=result.collections_created,
        loans_defaulted=result.loans_defaulted,
        failures=result.failures,
        reminders_created=reminders,
        new_collections_cases=result.new_collections_cases,
        stages=result.stages,
    )
