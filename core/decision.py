"""Rules for approving or rejecting a pending reschedule request.

The loan may have moved on since the request was submitted (a repayment
can settle the anchor installment, the loan can be charged off), so the
loan-level conditions are checked again against the current snapshot.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from core.dates import parse_date_value
from core.installments import (
    find_installment_by_due_date,
    read_installment_outstanding,
    read_installments,
)
from core.presets import DECISION_COMMANDS
from core.rules import ValidationFieldIssue, coerce, issue, issue_codes
from loanrules.models import (
    LoanSnapshot,
    RescheduleDecisionPayload,
    RescheduleRequestSnapshot,
)

logger = logging.getLogger(__name__)


# command -> (payload attribute, field name, code prefix)
DECISION_DATE_FIELDS = {
    "approve": ("approved_on_date", "approvedOnDate", "RESCHEDULE_APPROVED_ON"),
    "reject": ("rejected_on_date", "rejectedOnDate", "RESCHEDULE_REJECTED_ON"),
}


def _check_decision_date(
    command: str, payload: RescheduleDecisionPayload, submitted_on_request
) -> Optional[ValidationFieldIssue]:
    attr, field, prefix = DECISION_DATE_FIELDS[command]
    value = getattr(payload, attr)
    if not value:
        return issue(
            field,
            f"{field} is required for {command} command.",
            f"{prefix}_REQUIRED",
        )
    decided_on = parse_date_value(value)
    if decided_on and submitted_on_request and decided_on < submitted_on_request:
        return issue(
            field,
            f"{field} must be on or after the request submitted date.",
            f"{prefix}_INVALID",
        )
    return None


def validate_reschedule_decision_rules(
    command: Optional[str], request: Any, loan: Any, payload: Any
) -> List[ValidationFieldIssue]:
    request = coerce(RescheduleRequestSnapshot, request)
    loan = coerce(LoanSnapshot, loan)
    payload = coerce(RescheduleDecisionPayload, payload or {})
    command = (command or "").lower()
    res: List[ValidationFieldIssue] = []

    if request is None:
        res.append(
            issue(
                "scheduleId",
                "Reschedule request was not found.",
                "RESCHEDULE_REQUEST_NOT_FOUND",
            )
        )
        return res

    if not request.is_pending:
        res.append(
            issue(
                "scheduleId",
                "Reschedule request must be in pending approval state.",
                "RESCHEDULE_REQUEST_NOT_PENDING",
            )
        )

    if command not in DECISION_COMMANDS:
        logger.debug("reschedule decision rules (%r): %s", command, issue_codes(res))
        return res

    submitted_on_request = parse_date_value(
        request.timeline.submitted_on_date if request.timeline else None
    )
    problem = _check_decision_date(command, payload, submitted_on_request)
    if problem is not None:
        res.append(problem)

    if loan is None or not loan.is_active:
        res.append(
            issue(
                "loanId",
                "Loan must remain active at decision time.",
                "RESCHEDULE_LOAN_NOT_ACTIVE_AT_DECISION",
            )
        )
    if loan is not None and loan.charged_off:
        res.append(
            issue(
                "loanId",
                "Charged-off loans cannot be approved/rejected for restructure.",
                "RESCHEDULE_LOAN_CHARGED_OFF_AT_DECISION",
            )
        )

    anchor_date = parse_date_value(request.reschedule_from_date)
    if anchor_date:
        anchor = find_installment_by_due_date(read_installments(loan), anchor_date)
        if anchor is None:
            res.append(
                issue(
                    "scheduleId",
                    "Revalidation failed: anchor installment no longer exists at approval time.",
                    "RESCHEDULE_ANCHOR_NOT_FOUND_AT_DECISION",
                )
            )
        elif read_installment_outstanding(anchor) <= 0:
            res.append(
                issue(
                    "scheduleId",
                    "Revalidation failed: anchor installment is already fully paid.",
                    "RESCHEDULE_ANCHOR_PAID_AT_DECISION",
                )
            )

    logger.debug("reschedule decision rules (%s): %s", command, issue_codes(res))
    return res
