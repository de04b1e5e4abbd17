"""Snapshot and payload models consumed by the rule validators.

Field names follow the ledger service's camelCase JSON; every model also
accepts the snake_case attribute name and keeps unknown keys. Date-bearing
fields are left untyped because upstream services send them as
``[year, month, day]`` lists, ISO strings or ``"12 March 2024"`` strings.
"""
from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class LedgerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class Currency(LedgerModel):
    code: Optional[str] = None


class LoanStatus(LedgerModel):
    active: Optional[bool] = None


class LoanTimeline(LedgerModel):
    submitted_on_date: Any = None
    disbursed_on_date: Any = None
    actual_disbursement_date: Any = None
    expected_disbursement_date: Any = None


class LoanSummary(LedgerModel):
    total_outstanding: Optional[float] = None
    principal_outstanding: Optional[float] = None
    total_expected_repayment: Optional[float] = None


class TransactionType(LedgerModel):
    disbursement: Optional[bool] = None
    accrual: Optional[bool] = None
    contra: Optional[bool] = None


class LoanTransaction(LedgerModel):
    type: Optional[TransactionType] = None
    manually_reversed: Optional[bool] = None
    transaction_date: Any = None
    date: Any = None
    submitted_on_date: Any = None

    @property
    def effective_date(self) -> Any:
        return self.transaction_date or self.date or self.submitted_on_date


class RepaymentPeriod(LedgerModel):
    period: Optional[int] = None
    due_date: Any = None
    total_outstanding_for_period: Optional[float] = None
    principal_outstanding: Optional[float] = None
    interest_outstanding: Optional[float] = None
    fee_charges_outstanding: Optional[float] = None
    penalty_charges_outstanding: Optional[float] = None


class RepaymentSchedule(LedgerModel):
    periods: List[RepaymentPeriod] = Field(default_factory=list)

    @field_validator("periods", mode="before")
    @classmethod
    def _null_periods(cls, value):
        return [] if value is None else value


class ScheduleType(LedgerModel):
    code: Optional[str] = None
    value: Optional[str] = None


class LoanSnapshot(LedgerModel):
    id: Optional[int] = None
    client_id: Optional[int] = None
    loan_product_id: Optional[int] = None
    status: Optional[LoanStatus] = None
    charged_off: Optional[bool] = None
    timeline: Optional[LoanTimeline] = None
    disbursed_on_date: Any = None
    summary: Optional[LoanSummary] = None
    transactions: List[LoanTransaction] = Field(default_factory=list)
    repayment_schedule: Optional[RepaymentSchedule] = None
    currency: Optional[Currency] = None
    interest_rate_per_period: Optional[float] = None
    number_of_repayments: Optional[int] = None
    loan_schedule_type: Optional[ScheduleType] = None

    @field_validator("transactions", mode="before")
    @classmethod
    def _null_transactions(cls, value):
        return [] if value is None else value

    @property
    def is_active(self) -> bool:
        return bool(self.status and self.status.active)


class LoanProductSnapshot(LedgerModel):
    id: Optional[int] = None
    can_use_for_topup: Optional[bool] = None
    multi_disburse_loan: Optional[bool] = None
    is_interest_recalculation_enabled: Optional[bool] = None
    currency: Optional[Currency] = None
    min_interest_rate_per_period: Optional[float] = None
    max_interest_rate_per_period: Optional[float] = None
    max_number_of_repayments: Optional[int] = None

    @property
    def unsupported_multi_disburse(self) -> bool:
        """Multi-tranche products without interest recalculation."""
        return bool(self.multi_disburse_loan) and self.is_interest_recalculation_enabled is False


class DisbursementTranche(LedgerModel):
    principal: Optional[float] = None
    expected_disbursement_date: Any = None


class TopupLoanPayload(LedgerModel):
    client_id: Optional[int] = None
    product_id: Optional[int] = None
    principal: Optional[float] = None
    disbursement_data: List[DisbursementTranche] = Field(default_factory=list)
    expected_disbursement_date: Any = None
    submitted_on_date: Any = None
    is_topup: Optional[bool] = None
    loan_id_to_close: Optional[int] = None

    @field_validator("disbursement_data", mode="before")
    @classmethod
    def _null_tranches(cls, value):
        return [] if value is None else value


class RescheduleCreatePayload(LedgerModel):
    loan_id: Optional[int] = None
    submitted_on_date: Any = None
    reschedule_from_date: Any = None
    reschedule_from_installment: Optional[int] = None
    reschedule_reason_id: Optional[int] = None
    grace_on_principal: Optional[int] = None
    grace_on_interest: Optional[int] = None
    extra_terms: Optional[int] = None
    new_interest_rate: Optional[float] = None
    adjusted_due_date: Any = None
    # Numeric strings stay str; rules read the amount through to_number().
    emi: Optional[Union[float, str]] = None
    end_date: Any = None
    recalculate_interest: Optional[bool] = None


class RescheduleDecisionPayload(LedgerModel):
    approved_on_date: Any = None
    rejected_on_date: Any = None


class RescheduleStatus(LedgerModel):
    pending_approval: Optional[bool] = None


class RescheduleTimeline(LedgerModel):
    submitted_on_date: Any = None


class RescheduleRequestSnapshot(LedgerModel):
    id: Optional[int] = None
    loan_id: Optional[int] = None
    status_enum: Optional[RescheduleStatus] = None
    timeline: Optional[RescheduleTimeline] = None
    reschedule_from_date: Any = None

    @property
    def is_pending(self) -> bool:
        return bool(self.status_enum and self.status_enum.pending_approval)
