
# Platform-formatted dates, e.g. "12 March 2024".
FINERACT_DATE_FORMAT = "%d %B %Y"

# Substring of ``loanScheduleType.code``/``value`` that marks progressive loans.
PROGRESSIVE_SCHEDULE_MARKER = "PROGRESSIVE"

DECISION_COMMANDS = ("approve", "reject")

VALIDATION_ERROR_CODE = "VALIDATION_ERROR"
VALIDATION_ERROR_STATUS = 400

TOPUP_FAILED_MESSAGE = "Top-up validation failed."
RESCHEDULE_FAILED_MESSAGE = "Restructure validation failed."
DECISION_FAILED_MESSAGE = "Restructure decision validation failed."
