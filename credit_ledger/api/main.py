"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from credit_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from credit_ledger.api.v1 import applications, borrowers, calculators, delinquency, loans
from credit_ledger.infrastructure.observability.logging import setup_logging
from credit_ledger.config import settings

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Credit Ledger",
        description="Loan origination, repayment ledger and delinquency service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # last added = first executed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(calculators.router, prefix="/v1", tags=["calculators"])
    app.include_router(applications.router, prefix="/v1", tags=["applications"])
    app.include_router(borrowers.router, prefix="/v1", tags=["borrowers"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(delinquency.router, prefix="/v1", tags=["delinquency"])

    return app


app = create_app()
