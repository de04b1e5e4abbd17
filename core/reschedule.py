"""Rules for creating a loan reschedule (restructure) request.

All checks run and accumulate; nothing here stops early. Progressive loans
get an extra, separate block of rules because the ledger only supports a
narrower set of changes for them.
"""
from __future__ import annotations

import logging
from typing import Any, List

from core.dates import parse_date_value
from core.installments import (
    find_installment_by_due_date,
    find_installment_by_number,
    has_outstanding_charges,
    is_progressive_loan,
    read_installment_outstanding,
    read_installments,
    read_loan_disbursed_on_date,
)
from core.rules import ValidationFieldIssue, coerce, issue, issue_codes
from core.utils import is_positive, to_number
from loanrules.models import LoanProductSnapshot, LoanSnapshot, RescheduleCreatePayload

logger = logging.getLogger(__name__)


def validate_reschedule_create_rules(
    loan: Any, loan_product: Any, payload: Any
) -> List[ValidationFieldIssue]:
    loan = coerce(LoanSnapshot, loan)
    loan_product = coerce(LoanProductSnapshot, loan_product)
    payload = coerce(RescheduleCreatePayload, payload or {})
    res: List[ValidationFieldIssue] = []
    periods = read_installments(loan)

    if loan is None or not loan.is_active:
        res.append(
            issue(
                "loanId",
                "Loan restructure is allowed only for active loans.",
                "RESCHEDULE_LOAN_NOT_ACTIVE",
            )
        )
    if loan is not None and loan.charged_off:
        res.append(
            issue(
                "loanId",
                "Loan restructure is not allowed on charged-off loans.",
                "RESCHEDULE_LOAN_CHARGED_OFF",
            )
        )
    if not payload.submitted_on_date:
        res.append(
            issue(
                "submittedOnDate",
                "submittedOnDate is required.",
                "RESCHEDULE_SUBMITTED_ON_REQUIRED",
            )
        )
    if not payload.reschedule_from_date:
        res.append(
            issue(
                "rescheduleFromDate",
                "rescheduleFromDate is required.",
                "RESCHEDULE_FROM_DATE_REQUIRED",
            )
        )
    if not is_positive(payload.reschedule_reason_id):
        res.append(
            issue(
                "rescheduleReasonId",
                "rescheduleReasonId must be greater than zero.",
                "RESCHEDULE_REASON_REQUIRED",
            )
        )

    submitted_on = parse_date_value(payload.submitted_on_date)
    anchor_date = parse_date_value(payload.reschedule_from_date)
    adjusted_due_date = parse_date_value(payload.adjusted_due_date)
    end_date = parse_date_value(payload.end_date)
    disbursed_on = read_loan_disbursed_on_date(loan) if loan is not None else None

    if submitted_on and disbursed_on and submitted_on < disbursed_on:
        res.append(
            issue(
                "submittedOnDate",
                "submittedOnDate must be on or after loan disbursement date.",
                "RESCHEDULE_SUBMITTED_BEFORE_DISBURSAL",
            )
        )

    if anchor_date:
        anchor = find_installment_by_due_date(periods, anchor_date)
        if anchor is None:
            res.append(
                issue(
                    "rescheduleFromDate",
                    "rescheduleFromDate must match an existing installment due date.",
                    "RESCHEDULE_ANCHOR_INSTALLMENT_NOT_FOUND",
                )
            )
        elif read_installment_outstanding(anchor) <= 0:
            res.append(
                issue(
                    "rescheduleFromDate",
                    "Installment at rescheduleFromDate is fully paid and cannot be used as anchor.",
                    "RESCHEDULE_ANCHOR_INSTALLMENT_PAID",
                )
            )

    if is_positive(payload.reschedule_from_installment):
        anchor = find_installment_by_number(periods, payload.reschedule_from_installment)
        if anchor is None:
            res.append(
                issue(
                    "rescheduleFromInstallment",
                    "rescheduleFromInstallment must reference an existing installment.",
                    "RESCHEDULE_ANCHOR_INSTALLMENT_NUMBER_NOT_FOUND",
                )
            )
        elif read_installment_outstanding(anchor) <= 0:
            res.append(
                issue(
                    "rescheduleFromInstallment",
                    "rescheduleFromInstallment must reference an unpaid installment.",
                    "RESCHEDULE_ANCHOR_INSTALLMENT_NUMBER_PAID",
                )
            )

    has_grace_on_principal = payload.grace_on_principal is not None
    has_grace_on_interest = payload.grace_on_interest is not None
    has_extra_terms = payload.extra_terms is not None
    has_new_interest_rate = payload.new_interest_rate is not None
    has_adjusted_due_date = bool(payload.adjusted_due_date)
    has_emi = payload.emi is not None
    has_end_date = bool(payload.end_date)

    if not any(
        (
            has_grace_on_principal,
            has_grace_on_interest,
            has_extra_terms,
            has_new_interest_rate,
            has_adjusted_due_date,
            has_emi,
        )
    ):
        res.append(
            issue(
                "rescheduleFromDate",
                "At least one change is required (grace, extra terms, interest rate, adjusted due date, or EMI).",
                "RESCHEDULE_NO_CHANGES_PROVIDED",
            )
        )

    if adjusted_due_date and anchor_date and adjusted_due_date < anchor_date:
        res.append(
            issue(
                "adjustedDueDate",
                "adjustedDueDate must be on or after rescheduleFromDate.",
                "RESCHEDULE_ADJUSTED_DUE_DATE_INVALID",
            )
        )

    if has_emi != has_end_date:
        res.append(
            issue(
                "emi",
                "EMI and endDate must be provided together.",
                "RESCHEDULE_EMI_ENDDATE_COUPLING",
            )
        )
    elif has_emi:
        emi = to_number(payload.emi)
        if emi is None or emi <= 0:
            res.append(
                issue("emi", "emi must be greater than zero.", "RESCHEDULE_EMI_INVALID")
            )
        if end_date and find_installment_by_due_date(periods, end_date) is None:
            res.append(
                issue(
                    "endDate",
                    "endDate must match an existing installment due date.",
                    "RESCHEDULE_END_DATE_INSTALLMENT_NOT_FOUND",
                )
            )

    for field, value, code in (
        ("graceOnPrincipal", payload.grace_on_principal, "RESCHEDULE_GRACE_ON_PRINCIPAL_INVALID"),
        ("graceOnInterest", payload.grace_on_interest, "RESCHEDULE_GRACE_ON_INTEREST_INVALID"),
        ("extraTerms", payload.extra_terms, "RESCHEDULE_EXTRA_TERMS_INVALID"),
    ):
        if value is not None and value <= 0:
            res.append(issue(field, f"{field} must be greater than zero.", code))

    progressive = is_progressive_loan(loan)

    if not progressive and has_new_interest_rate:
        current_rate = 0.0
        if loan is not None and loan.interest_rate_per_period is not None:
            current_rate = loan.interest_rate_per_period
        if current_rate == 0 and payload.new_interest_rate != 0:
            res.append(
                issue(
                    "newInterestRate",
                    "Current interest rate is zero; non-zero newInterestRate is not allowed.",
                    "RESCHEDULE_NEW_RATE_NOT_ALLOWED_FOR_ZERO_RATE_LOAN",
                )
            )
        if current_rate != 0 and payload.new_interest_rate <= 0:
            res.append(
                issue(
                    "newInterestRate",
                    "newInterestRate must be greater than zero.",
                    "RESCHEDULE_NEW_RATE_INVALID",
                )
            )

    if anchor_date and _has_charges_before(periods, anchor_date):
        res.append(
            issue(
                "rescheduleFromDate",
                "Overdue installment charges conflict with the selected reschedule boundary.",
                "RESCHEDULE_OVERDUE_CHARGE_CONFLICT",
            )
        )

    if loan_product is not None and loan_product.unsupported_multi_disburse:
        res.append(
            issue(
                "loanId",
                "Unsupported multi-disbursement loan configuration for restructure.",
                "RESCHEDULE_MULTI_DISBURSE_UNSUPPORTED",
            )
        )

    if progressive:
        res.extend(_progressive_rules(loan, loan_product, payload))

    logger.debug("reschedule create rules: %s", issue_codes(res))
    return res


def _has_charges_before(periods, anchor_date) -> bool:
    """True when an installment due before ``anchor_date`` still owes fees or penalties."""
    for period in periods:
        due = parse_date_value(period.due_date)
        if due is not None and due < anchor_date and has_outstanding_charges(period):
            return True
    return False


def _progressive_rules(
    loan: LoanSnapshot,
    loan_product: LoanProductSnapshot,
    payload: RescheduleCreatePayload,
) -> List[ValidationFieldIssue]:
    res: List[ValidationFieldIssue] = []
    rate = payload.new_interest_rate

    operations = [
        rate is not None,
        bool(payload.adjusted_due_date),
        payload.extra_terms is not None,
    ]
    if sum(operations) != 1:
        res.append(
            issue(
                "rescheduleFromDate",
                "Progressive loans require exactly one operation per request (interest rate change, adjusted due date, or extra terms).",
                "PROGRESSIVE_RESCHEDULE_SINGLE_OPERATION_REQUIRED",
            )
        )

    for field, value in (
        ("graceOnPrincipal", payload.grace_on_principal),
        ("graceOnInterest", payload.grace_on_interest),
        ("emi", payload.emi),
    ):
        if value is not None:
            res.append(
                issue(
                    field,
                    f"{field} is not supported for progressive loans.",
                    "PROGRESSIVE_RESCHEDULE_UNSUPPORTED_FIELD",
                )
            )

    min_rate = loan_product.min_interest_rate_per_period if loan_product else None
    max_rate = loan_product.max_interest_rate_per_period if loan_product else None
    if rate is not None:
        if rate < 0:
            res.append(
                issue(
                    "newInterestRate",
                    "newInterestRate must be greater than or equal to zero.",
                    "PROGRESSIVE_RESCHEDULE_RATE_INVALID",
                )
            )
        if min_rate is not None and rate < min_rate:
            res.append(
                issue(
                    "newInterestRate",
                    f"newInterestRate must be at least {min_rate:g}.",
                    "PROGRESSIVE_RESCHEDULE_RATE_BELOW_MIN",
                )
            )
        if max_rate is not None and rate > max_rate:
            res.append(
                issue(
                    "newInterestRate",
                    f"newInterestRate must not exceed {max_rate:g}.",
                    "PROGRESSIVE_RESCHEDULE_RATE_ABOVE_MAX",
                )
            )

    max_repayments = loan_product.max_number_of_repayments if loan_product else None
    if (
        payload.extra_terms is not None
        and max_repayments is not None
        and loan.number_of_repayments is not None
    ):
        allowed = max_repayments - loan.number_of_repayments
        if payload.extra_terms > allowed:
            res.append(
                issue(
                    "extraTerms",
                    f"extraTerms cannot exceed {allowed} for this progressive loan.",
                    "PROGRESSIVE_RESCHEDULE_EXTRA_TERMS_EXCEEDS_LIMIT",
                )
            )
    return res
