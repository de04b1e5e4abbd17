"""Rules for top-up loans: a new loan that closes an existing one."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from core.dates import parse_date_value
from core.installments import (
    read_loan_disbursed_on_date,
    read_loan_last_user_transaction_date,
)
from core.rules import ValidationFieldIssue, coerce, issue, issue_codes
from loanrules.models import LoanProductSnapshot, LoanSnapshot, TopupLoanPayload

logger = logging.getLogger(__name__)


def read_loan_outstanding_amount(loan: LoanSnapshot) -> float:
    summary = loan.summary
    if summary is None:
        return 0.0
    for amount in (
        summary.total_outstanding,
        summary.principal_outstanding,
        summary.total_expected_repayment,
    ):
        if amount is not None:
            return amount
    return 0.0


def _currency_code(snapshot) -> Optional[str]:
    if snapshot is None or snapshot.currency is None:
        return None
    return snapshot.currency.code


def read_first_disbursal_amount(payload: TopupLoanPayload) -> Optional[float]:
    """Principal of the first tranche that has one, else the loan principal."""
    for tranche in payload.disbursement_data:
        if tranche.principal is not None:
            return tranche.principal
    return payload.principal


def _is_topup(payload: Any) -> bool:
    """Read the top-up flag without validating the rest of the payload."""
    if payload is None:
        return False
    if isinstance(payload, TopupLoanPayload):
        return bool(payload.is_topup)
    return bool(payload.get("isTopup", payload.get("is_topup")))


def validate_topup_rules(
    loan_to_close: Any,
    loan_to_close_product: Any,
    new_loan_product: Any,
    payload: Any,
) -> List[ValidationFieldIssue]:
    """Check a top-up origination against the loan it would close.

    Returns an empty list when ``payload`` is not a top-up. A missing
    ``loan_to_close`` stops evaluation after the target checks because every
    later rule reads from it.
    """
    res: List[ValidationFieldIssue] = []
    if not _is_topup(payload):
        return res

    payload = coerce(TopupLoanPayload, payload)

    loan_to_close = coerce(LoanSnapshot, loan_to_close)
    loan_to_close_product = coerce(LoanProductSnapshot, loan_to_close_product)
    new_loan_product = coerce(LoanProductSnapshot, new_loan_product)

    if new_loan_product is None or not new_loan_product.can_use_for_topup:
        res.append(
            issue(
                "productId",
                "Selected loan product is not enabled for top-up.",
                "TOPUP_PRODUCT_NOT_ALLOWED",
            )
        )

    if not payload.loan_id_to_close or payload.loan_id_to_close <= 0:
        res.append(
            issue(
                "loanIdToClose",
                "loanIdToClose is required when isTopup is true.",
                "TOPUP_TARGET_REQUIRED",
            )
        )

    if loan_to_close is None:
        res.append(
            issue(
                "loanIdToClose",
                "Target loan to close was not found.",
                "TOPUP_TARGET_NOT_FOUND",
            )
        )
        logger.debug("top-up rules stopped early: %s", issue_codes(res))
        return res

    if (
        payload.client_id is not None
        and loan_to_close.client_id is not None
        and payload.client_id != loan_to_close.client_id
    ):
        res.append(
            issue(
                "loanIdToClose",
                "Top-up loan must belong to the same client as the new loan.",
                "TOPUP_CLIENT_MISMATCH",
            )
        )

    if not loan_to_close.is_active:
        res.append(
            issue(
                "loanIdToClose",
                "Only active loans can be selected for top-up closure.",
                "TOPUP_TARGET_NOT_ACTIVE",
            )
        )

    new_currency = _currency_code(new_loan_product)
    old_currency = _currency_code(loan_to_close)
    if new_currency and old_currency and new_currency != old_currency:
        res.append(
            issue(
                "loanIdToClose",
                "Top-up loan currency must match the new loan currency.",
                "TOPUP_CURRENCY_MISMATCH",
            )
        )

    submitted_on = parse_date_value(payload.submitted_on_date)
    disbursement_date = parse_date_value(payload.expected_disbursement_date)
    disbursed_on_old_loan = read_loan_disbursed_on_date(loan_to_close)
    last_user_txn_date = read_loan_last_user_transaction_date(loan_to_close)

    if submitted_on and disbursed_on_old_loan and submitted_on <= disbursed_on_old_loan:
        res.append(
            issue(
                "submittedOnDate",
                "submittedOnDate must be later than the old loan disbursement date.",
                "TOPUP_SUBMISSION_DATE_INVALID",
            )
        )

    if disbursement_date and last_user_txn_date and disbursement_date < last_user_txn_date:
        res.append(
            issue(
                "expectedDisbursementDate",
                "expectedDisbursementDate must be on or after the old loan last transaction date.",
                "TOPUP_DISBURSAL_DATE_INVALID",
            )
        )

    outstanding = read_loan_outstanding_amount(loan_to_close)
    first_disbursal_amount = read_first_disbursal_amount(payload)
    if first_disbursal_amount is not None and outstanding > first_disbursal_amount:
        res.append(
            issue(
                "loanIdToClose",
                "Outstanding on target loan cannot exceed the first disbursal amount.",
                "TOPUP_OUTSTANDING_EXCEEDS_DISBURSAL",
            )
        )

    if loan_to_close_product is not None and loan_to_close_product.unsupported_multi_disburse:
        res.append(
            issue(
                "loanIdToClose",
                "Top-up is not supported for multi-tranche loans without interest recalculation.",
                "TOPUP_UNSUPPORTED_TARGET_SHAPE",
            )
        )

    # Same condition as the outstanding check, reported against the principal.
    if first_disbursal_amount is not None and first_disbursal_amount - outstanding < 0:
        res.append(
            issue(
                "principal",
                "Net disbursal cannot be negative for a top-up loan.",
                "TOPUP_NEGATIVE_NET_DISBURSAL",
            )
        )

    logger.debug("top-up rules: %s", issue_codes(res))
    return res
