"""Request guards that run the rule validators in front of ledger mutations.

Each guard resolves the snapshots a validator needs through a
:class:`SnapshotReader`, runs the validator and returns either ``None`` (the
caller may forward the mutation to the ledger) or a
:class:`ValidationErrorResponse` describing every violated rule.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol

from pydantic import BaseModel, Field

from core.decision import validate_reschedule_decision_rules
from core.presets import (
    DECISION_COMMANDS,
    DECISION_FAILED_MESSAGE,
    RESCHEDULE_FAILED_MESSAGE,
    TOPUP_FAILED_MESSAGE,
    VALIDATION_ERROR_CODE,
    VALIDATION_ERROR_STATUS,
)
from core.reschedule import validate_reschedule_create_rules
from core.rules import ValidationFieldIssue, issue, issue_codes
from core.topup import validate_topup_rules
from core.utils import is_positive

logger = logging.getLogger(__name__)


class SnapshotReader(Protocol):
    """Read access to the ledger; each method returns ``None`` when not found."""

    def get_loan(self, loan_id: int) -> Optional[Mapping[str, Any]]: ...

    def get_loan_product(self, product_id: int) -> Optional[Mapping[str, Any]]: ...

    def get_reschedule_request(self, schedule_id: Any) -> Optional[Mapping[str, Any]]: ...


class ValidationErrorResponse(BaseModel):
    http_status: int = Field(default=VALIDATION_ERROR_STATUS, serialization_alias="httpStatus")
    code: str = VALIDATION_ERROR_CODE
    message: str
    field_errors: List[ValidationFieldIssue] = Field(
        default_factory=list, serialization_alias="fieldErrors"
    )
    retryable: bool = False


def validation_error_response(
    message: str, issues: List[ValidationFieldIssue]
) -> ValidationErrorResponse:
    return ValidationErrorResponse(message=message, field_errors=list(issues))


def _reject(message: str, issues: List[ValidationFieldIssue]) -> Optional[ValidationErrorResponse]:
    if not issues:
        return None
    logger.info("%s %s", message, issue_codes(issues))
    return validation_error_response(message, issues)


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def guard_topup_request(
    body: Mapping[str, Any], reader: SnapshotReader
) -> Optional[ValidationErrorResponse]:
    if not body.get("isTopup"):
        return None

    product_id = _int_or_none(body.get("productId"))
    new_loan_product = reader.get_loan_product(product_id) if product_id is not None else None

    loan_to_close = None
    loan_id_to_close = _int_or_none(body.get("loanIdToClose"))
    if is_positive(loan_id_to_close):
        try:
            loan_to_close = reader.get_loan(loan_id_to_close)
        except Exception as exc:
            logger.warning("Top-up target loan %s could not be read: %s", loan_id_to_close, exc)
            loan_to_close = None

    loan_to_close_product = None
    if loan_to_close is not None and loan_to_close.get("loanProductId") is not None:
        loan_to_close_product = reader.get_loan_product(loan_to_close["loanProductId"])

    issues = validate_topup_rules(loan_to_close, loan_to_close_product, new_loan_product, body)
    return _reject(TOPUP_FAILED_MESSAGE, issues)


def guard_reschedule_create(
    body: Mapping[str, Any], reader: SnapshotReader
) -> Optional[ValidationErrorResponse]:
    loan_id = _int_or_none(body.get("loanId"))
    if not is_positive(loan_id):
        return _reject(
            RESCHEDULE_FAILED_MESSAGE,
            [
                issue(
                    "loanId",
                    "loanId is required and must be greater than zero.",
                    "RESCHEDULE_LOAN_ID_REQUIRED",
                )
            ],
        )

    loan = reader.get_loan(loan_id)
    product_id = _int_or_none(loan.get("loanProductId")) if loan is not None else None
    loan_product = reader.get_loan_product(product_id) if product_id is not None else None

    issues = validate_reschedule_create_rules(loan, loan_product, body)
    return _reject(RESCHEDULE_FAILED_MESSAGE, issues)


def guard_reschedule_decision(
    schedule_id: Any,
    command: Optional[str],
    body: Mapping[str, Any],
    reader: SnapshotReader,
) -> Optional[ValidationErrorResponse]:
    command = (command or "").lower()
    if command not in DECISION_COMMANDS:
        return None

    request = reader.get_reschedule_request(schedule_id)
    loan_id = _int_or_none(request.get("loanId")) if request is not None else None
    loan = reader.get_loan(loan_id) if loan_id is not None else None

    issues = validate_reschedule_decision_rules(command, request, loan, body)
    return _reject(DECISION_FAILED_MESSAGE, issues)
