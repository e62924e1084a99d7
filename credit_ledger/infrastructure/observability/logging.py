"""Structured JSON logging for ledger events"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from credit_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping timestamp, level and service name"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_ledger_event(event: str, **fields: Any) -> None:
    """Log a committed ledger mutation (payment, disbursement, collections)"""
    logging.info(event.replace("_", " ").capitalize(), extra={"step": event, **fields})


def log_sweep(
    loans_scanned: int,
    penalties_applied: int,
    notifications_created: int,
    collections_created: int,
    failures: int,
    duration_ms: float,
) -> None:
    """Log the outcome of one delinquency sweep for analysis"""
    logging.info(
        "Delinquency sweep completed",
        extra={
            "step": "sweep_completed",
            "loans_scanned": loans_scanned,
            "penalties_applied": penalties_applied,
            "notifications_created": notifications_created,
            "collections_created": collections_created,
            "failures": failures,
            "duration_ms": duration_ms,
        },
    )
