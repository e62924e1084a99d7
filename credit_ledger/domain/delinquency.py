"""Delinquency staging and the notifications each stage raises"""

from datetime import date
from typing import List, Optional, Sequence

from credit_ledger.domain.models import NotificationSpec
from credit_ledger.utils.date_utils import days_between

DEFAULT_THRESHOLDS = (60, 90, 180)
COLLECTIONS_THRESHOLD = 180

STAFF_ROLES = ("manager", "admin")

THRESHOLD_MESSAGES = {
    60: "Your account is considered severely delinquent after missing two billing cycles.",
    90: "Collections activity intensifies after three missed billing cycles.",
}
COLLECTIONS_MESSAGE = "Your account is being forwarded to collections due to extended delinquency."

COLLECTIONS_REASON = "180+ days delinquent without payment"


def delinquency_stage(
    days_late: int,
    thresholds: Sequence[int] = DEFAULT_THRESHOLDS,
    collections_threshold: int = COLLECTIONS_THRESHOLD,
) -> str:
    """
    Classify a loan by how far past its effective due date it is.

    current -> late -> delinquent_<threshold> -> defaulted
    """
    if days_late <= 0:
        return "current"
    if days_late >= collections_threshold:
        return "defaulted"
    reached = [t for t in sorted(thresholds) if days_late >= t]
    return f"delinquent_{reached[-1]}" if reached else "late"


def threshold_severity(threshold: int, collections_threshold: int = COLLECTIONS_THRESHOLD) -> str:
    return "critical" if threshold >= collections_threshold else "warning"


def threshold_reference_key(loan_id: str, threshold: int, role: str) -> str:
    return f"loan-{loan_id}-delinquent-{threshold}-{role}"


def threshold_notifications(
    loan_id: str,
    borrower_id: Optional[str],
    borrower_name: str,
    days_late: int,
    thresholds: Sequence[int] = DEFAULT_THRESHOLDS,
    collections_threshold: int = COLLECTIONS_THRESHOLD,
) -> List[NotificationSpec]:
    """One notification per reached threshold for the borrower, the manager and the admin"""
    notifications = []
    for threshold in sorted(thresholds):
        if days_late < threshold:
            continue

        severity = threshold_severity(threshold, collections_threshold)
        title = f"{threshold} Days Delinquent"
        borrower_message = THRESHOLD_MESSAGES.get(threshold, COLLECTIONS_MESSAGE)
        staff_message = f"{borrower_name} is {threshold} days delinquent."

        notifications.append(
            NotificationSpec(
                target_role="borrower",
                type="payment_overdue",
                title=title,
                message=borrower_message,
                severity=severity,
                reference_key=threshold_reference_key(loan_id, threshold, "borrower"),
                borrower_id=borrower_id,
                loan_id=loan_id,
            )
        )
        for role in STAFF_ROLES:
            notifications.append(
                NotificationSpec(
                    target_role=role,
                    type="payment_overdue",
                    title=title,
                    message=staff_message,
                    severity=severity,
                    reference_key=threshold_reference_key(loan_id, threshold, role),
                    loan_id=loan_id,
                )
            )
    return notifications


def payment_reminder(
    loan_id: str,
    borrower_id: Optional[str],
    borrower_name: str,
    next_due_date: Optional[date],
    today: date,
    days_late: int,
    reminder_days: int = 7,
) -> Optional[NotificationSpec]:
    """
    Borrower reminder keyed by loan and due date.

    Upcoming within reminder_days: payment_due (warning at 3 days or less).
    Past the grace period: payment_overdue, critical.
    """
    if next_due_date is None:
        return None

    if days_late > 0:
        return NotificationSpec(
            target_role="borrower",
            type="payment_overdue",
            title="Payment overdue",
            message=f"Payment is overdue by {days_late} day(s) for {borrower_name}.",
            severity="critical",
            reference_key=f"overdue-{loan_id}-{next_due_date.isoformat()}",
            borrower_id=borrower_id,
            loan_id=loan_id,
        )

    days_until_due = days_between(next_due_date, today)
    if 0 <= days_until_due <= reminder_days:
        return NotificationSpec(
            target_role="borrower",
            type="payment_due",
            title="Upcoming payment due",
            message=f"Payment due in {days_until_due} day(s) for {borrower_name}.",
            severity="warning" if days_until_due <= 3 else "info",
            reference_key=f"due-{loan_id}-{next_due_date.isoformat()}",
            borrower_id=borrower_id,
            loan_id=loan_id,
        )
    return None
