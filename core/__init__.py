"""Rule validators for loan top-ups and reschedules."""

from core.decision import validate_reschedule_decision_rules
from core.reschedule import validate_reschedule_create_rules
from core.rules import ValidationFieldIssue
from core.topup import validate_topup_rules
from loanrules import __version__

__all__ = [
    "ValidationFieldIssue",
    "validate_reschedule_create_rules",
    "validate_reschedule_decision_rules",
    "validate_topup_rules",
    "__version__",
]
