from core.reschedule import validate_reschedule_create_rules
from core.rules import issue_codes
from tests.snapshots import make_loan, make_product, progressive_loan, set_period


def _payload(**overrides):
    payload = {
        "loanId": 7,
        "submittedOnDate": "01 March 2024",
        "rescheduleFromDate": "10 March 2024",
        "rescheduleReasonId": 4,
        "graceOnPrincipal": 1,
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


def _run(loan=None, product=None, **payload):
    if loan is None:
        loan = make_loan()
    if product is None:
        product = make_product()
    return validate_reschedule_create_rules(loan, product, _payload(**payload))


def _codes(loan=None, product=None, **payload):
    return issue_codes(_run(loan, product, **payload))


def test_valid_request_has_no_issues():
    assert _codes() == []


def test_baseline_checks_accumulate():
    loan = make_loan(status={"active": False}, chargedOff=True)
    codes = issue_codes(validate_reschedule_create_rules(loan, make_product(), {}))
    assert codes == [
        "RESCHEDULE_LOAN_NOT_ACTIVE",
        "RESCHEDULE_LOAN_CHARGED_OFF",
        "RESCHEDULE_SUBMITTED_ON_REQUIRED",
        "RESCHEDULE_FROM_DATE_REQUIRED",
        "RESCHEDULE_REASON_REQUIRED",
        "RESCHEDULE_NO_CHANGES_PROVIDED",
    ]


def test_unresolved_loan_is_not_active():
    codes = issue_codes(validate_reschedule_create_rules(None, None, _payload()))
    assert codes == ["RESCHEDULE_LOAN_NOT_ACTIVE", "RESCHEDULE_ANCHOR_INSTALLMENT_NOT_FOUND"]


def test_reason_must_be_positive():
    assert _codes(rescheduleReasonId=0) == ["RESCHEDULE_REASON_REQUIRED"]
    assert _codes(rescheduleReasonId=-2) == ["RESCHEDULE_REASON_REQUIRED"]


def test_submitted_before_disbursal():
    assert _codes(submittedOnDate="05 January 2024") == ["RESCHEDULE_SUBMITTED_BEFORE_DISBURSAL"]
    assert _codes(submittedOnDate="10 January 2024") == []


def test_anchor_date_must_match_unpaid_installment():
    assert _codes(rescheduleFromDate="11 March 2024") == ["RESCHEDULE_ANCHOR_INSTALLMENT_NOT_FOUND"]
    assert _codes(rescheduleFromDate=[2024, 2, 10]) == ["RESCHEDULE_ANCHOR_INSTALLMENT_PAID"]


def test_unparseable_anchor_date_is_skipped():
    assert _codes(rescheduleFromDate="whenever") == []


def test_anchor_installment_number():
    assert _codes(rescheduleFromInstallment=9) == ["RESCHEDULE_ANCHOR_INSTALLMENT_NUMBER_NOT_FOUND"]
    assert _codes(rescheduleFromInstallment=1) == ["RESCHEDULE_ANCHOR_INSTALLMENT_NUMBER_PAID"]
    assert _codes(rescheduleFromInstallment=2) == []


def test_anchor_checks_run_independently():
    codes = _codes(rescheduleFromDate="11 March 2024", rescheduleFromInstallment=1)
    assert codes == [
        "RESCHEDULE_ANCHOR_INSTALLMENT_NOT_FOUND",
        "RESCHEDULE_ANCHOR_INSTALLMENT_NUMBER_PAID",
    ]


def test_no_changes_provided():
    res = _run(graceOnPrincipal=None)
    assert issue_codes(res) == ["RESCHEDULE_NO_CHANGES_PROVIDED"]
    assert res[0].field == "rescheduleFromDate"


def test_adjusted_due_date_not_before_anchor():
    assert _codes(graceOnPrincipal=None, adjustedDueDate="2024-03-01") == [
        "RESCHEDULE_ADJUSTED_DUE_DATE_INVALID"
    ]
    assert _codes(graceOnPrincipal=None, adjustedDueDate="2024-03-15") == []


def test_emi_without_end_date_is_coupling_only():
    codes = _codes(emi=500)
    assert "RESCHEDULE_EMI_ENDDATE_COUPLING" in codes
    assert "RESCHEDULE_EMI_INVALID" not in codes
    assert "RESCHEDULE_END_DATE_INSTALLMENT_NOT_FOUND" not in codes


def test_end_date_without_emi_is_coupling_only():
    assert _codes(endDate="2024-05-10") == ["RESCHEDULE_EMI_ENDDATE_COUPLING"]


def test_emi_and_end_date_together():
    assert _codes(emi=0, endDate="2024-05-10") == [
        "RESCHEDULE_EMI_INVALID",
        "RESCHEDULE_END_DATE_INSTALLMENT_NOT_FOUND",
    ]
    assert _codes(emi="abc", endDate=[2024, 4, 10]) == ["RESCHEDULE_EMI_INVALID"]
    assert _codes(emi="250", endDate=[2024, 4, 10]) == []


def test_magnitudes_must_be_positive():
    res = _run(graceOnPrincipal=0, graceOnInterest=-1, extraTerms=0)
    assert issue_codes(res) == [
        "RESCHEDULE_GRACE_ON_PRINCIPAL_INVALID",
        "RESCHEDULE_GRACE_ON_INTEREST_INVALID",
        "RESCHEDULE_EXTRA_TERMS_INVALID",
    ]
    assert [r.field for r in res] == ["graceOnPrincipal", "graceOnInterest", "extraTerms"]


def test_rate_change_on_zero_rate_loan():
    loan = make_loan(interestRatePerPeriod=0)
    assert _codes(loan=loan, newInterestRate=1.5) == [
        "RESCHEDULE_NEW_RATE_NOT_ALLOWED_FOR_ZERO_RATE_LOAN"
    ]
    assert _codes(loan=loan, newInterestRate=0) == []
    assert _codes(loan=make_loan(interestRatePerPeriod=None), newInterestRate=1) == [
        "RESCHEDULE_NEW_RATE_NOT_ALLOWED_FOR_ZERO_RATE_LOAN"
    ]


def test_rate_change_must_stay_positive():
    assert _codes(newInterestRate=0) == ["RESCHEDULE_NEW_RATE_INVALID"]
    assert _codes(newInterestRate=1.25) == []


def test_overdue_charges_before_anchor():
    loan = set_period(
        make_loan(), 1, dueDate=[2024, 2, 10], totalOutstandingForPeriod=10, feeChargesOutstanding=10
    )
    assert _codes(loan=loan) == ["RESCHEDULE_OVERDUE_CHARGE_CONFLICT"]

    loan = set_period(
        make_loan(), 2, dueDate=[2024, 3, 10], totalOutstandingForPeriod=30, penaltyChargesOutstanding=30
    )
    assert _codes(loan=loan) == []


def test_multi_disburse_without_recalculation():
    product = make_product(multiDisburseLoan=True, isInterestRecalculationEnabled=False)
    assert _codes(product=product) == ["RESCHEDULE_MULTI_DISBURSE_UNSUPPORTED"]
    product = make_product(multiDisburseLoan=True, isInterestRecalculationEnabled=True)
    assert _codes(product=product) == []


def test_progressive_requires_single_operation():
    codes = _codes(loan=progressive_loan(), graceOnPrincipal=None, newInterestRate=3, extraTerms=2)
    assert "PROGRESSIVE_RESCHEDULE_SINGLE_OPERATION_REQUIRED" in codes
    assert _codes(loan=progressive_loan(), graceOnPrincipal=None, extraTerms=2) == []


def test_progressive_rejects_unsupported_fields():
    res = _run(
        loan=progressive_loan(),
        graceOnInterest=1,
        emi=300,
        endDate=[2024, 4, 10],
        adjustedDueDate="2024-03-12",
    )
    unsupported = [r.field for r in res if r.code == "PROGRESSIVE_RESCHEDULE_UNSUPPORTED_FIELD"]
    assert unsupported == ["graceOnPrincipal", "graceOnInterest", "emi"]
    assert "PROGRESSIVE_RESCHEDULE_SINGLE_OPERATION_REQUIRED" not in issue_codes(res)


def test_progressive_grace_only_fails_operation_count():
    codes = _codes(loan=progressive_loan())
    assert codes == [
        "PROGRESSIVE_RESCHEDULE_SINGLE_OPERATION_REQUIRED",
        "PROGRESSIVE_RESCHEDULE_UNSUPPORTED_FIELD",
    ]


def test_progressive_skips_cumulative_rate_rules():
    loan = progressive_loan(interestRatePerPeriod=0)
    assert _codes(loan=loan, graceOnPrincipal=None, newInterestRate=3) == []


def test_progressive_rate_bounds():
    product = make_product(minInterestRatePerPeriod=1, maxInterestRatePerPeriod=5)
    loan = progressive_loan()

    res = _run(loan=loan, product=product, graceOnPrincipal=None, newInterestRate=0.5)
    assert issue_codes(res) == ["PROGRESSIVE_RESCHEDULE_RATE_BELOW_MIN"]
    assert res[0].message == "newInterestRate must be at least 1."

    res = _run(loan=loan, product=product, graceOnPrincipal=None, newInterestRate=7)
    assert issue_codes(res) == ["PROGRESSIVE_RESCHEDULE_RATE_ABOVE_MAX"]
    assert res[0].message == "newInterestRate must not exceed 5."

    assert _codes(loan=loan, product=product, graceOnPrincipal=None, newInterestRate=-1) == [
        "PROGRESSIVE_RESCHEDULE_RATE_INVALID",
        "PROGRESSIVE_RESCHEDULE_RATE_BELOW_MIN",
    ]
    assert _codes(loan=loan, graceOnPrincipal=None, newInterestRate=-1) == [
        "PROGRESSIVE_RESCHEDULE_RATE_INVALID"
    ]


def test_progressive_extra_terms_limit():
    product = make_product(maxNumberOfRepayments=8)
    res = _run(loan=progressive_loan(), product=product, graceOnPrincipal=None, extraTerms=3)
    assert issue_codes(res) == ["PROGRESSIVE_RESCHEDULE_EXTRA_TERMS_EXCEEDS_LIMIT"]
    assert res[0].message == "extraTerms cannot exceed 2 for this progressive loan."
    assert _codes(loan=progressive_loan(), product=product, graceOnPrincipal=None, extraTerms=2) == []
    assert _codes(loan=progressive_loan(), graceOnPrincipal=None, extraTerms=30) == []
