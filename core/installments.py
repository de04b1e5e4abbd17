"""Lookups over a loan snapshot's repayment schedule and transaction history."""
from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from core.dates import max_date, parse_date_value
from core.presets import PROGRESSIVE_SCHEDULE_MARKER
from loanrules.models import LoanSnapshot, RepaymentPeriod


def read_installments(loan: Optional[LoanSnapshot]) -> List[RepaymentPeriod]:
    """Return the loan's repayment periods in schedule order."""
    if loan is None or loan.repayment_schedule is None:
        return []
    return list(loan.repayment_schedule.periods)


def find_installment_by_due_date(
    periods: Sequence[RepaymentPeriod], due: date
) -> Optional[RepaymentPeriod]:
    for period in periods:
        if parse_date_value(period.due_date) == due:
            return period
    return None


def find_installment_by_number(
    periods: Sequence[RepaymentPeriod], number: int
) -> Optional[RepaymentPeriod]:
    for period in periods:
        if period.period == number:
            return period
    return None


def read_installment_outstanding(period: RepaymentPeriod) -> float:
    """Amount still owed on ``period``.

    The ledger's precomputed ``totalOutstandingForPeriod`` wins; older
    schedules only carry the components, which are summed instead.
    """
    if period.total_outstanding_for_period is not None:
        return period.total_outstanding_for_period
    return (
        (period.principal_outstanding or 0)
        + (period.interest_outstanding or 0)
        + (period.fee_charges_outstanding or 0)
        + (period.penalty_charges_outstanding or 0)
    )


def has_outstanding_charges(period: RepaymentPeriod) -> bool:
    return (period.fee_charges_outstanding or 0) > 0 or (
        period.penalty_charges_outstanding or 0
    ) > 0


def read_loan_disbursed_on_date(loan: LoanSnapshot) -> Optional[date]:
    """Best guess at when ``loan`` was disbursed.

    Several sources may carry the date and they are not always in agreement;
    the latest one wins. The expected disbursement date only matters when
    nothing else is known or it is later than every other source.
    """
    timeline = loan.timeline
    first_disbursement = next(
        (
            d
            for d in (
                parse_date_value(txn.effective_date)
                for txn in loan.transactions
                if txn.type is not None
                and txn.type.disbursement is True
                and not txn.manually_reversed
            )
            if d is not None
        ),
        None,
    )
    return max_date(
        [
            parse_date_value(timeline.disbursed_on_date) if timeline else None,
            parse_date_value(timeline.actual_disbursement_date) if timeline else None,
            parse_date_value(loan.disbursed_on_date),
            first_disbursement,
            parse_date_value(timeline.expected_disbursement_date) if timeline else None,
        ]
    )


def _is_user_transaction(txn) -> bool:
    if txn.manually_reversed:
        return False
    if txn.type is not None and (txn.type.accrual or txn.type.contra):
        return False
    return True


def read_loan_last_user_transaction_date(loan: LoanSnapshot) -> Optional[date]:
    """Latest date of a non-reversed, non-accrual, non-contra transaction.

    Falls back to the disbursement date when the loan has no such
    transaction.
    """
    dates = [
        d
        for d in (
            parse_date_value(txn.effective_date)
            for txn in loan.transactions
            if _is_user_transaction(txn)
        )
        if d is not None
    ]
    if dates:
        return sorted(dates, reverse=True)[0]
    return read_loan_disbursed_on_date(loan)


def is_progressive_loan(loan: Optional[LoanSnapshot]) -> bool:
    if loan is None or loan.loan_schedule_type is None:
        return False
    schedule_type = loan.loan_schedule_type
    code = schedule_type.code or schedule_type.value or ""
    return PROGRESSIVE_SCHEDULE_MARKER in code.upper()
