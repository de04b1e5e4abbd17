from __future__ import annotations
from typing import Any, List, Optional, Type, TypeVar
from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class ValidationFieldIssue(BaseModel):
    field: str
    message: str
    code: str


def issue(field: str, message: str, code: str) -> ValidationFieldIssue:
    return ValidationFieldIssue(field=field, message=message, code=code)


def coerce(model: Type[M], value: Any) -> Optional[M]:
    """Accept either a model instance or a raw mapping from the ledger API."""
    if value is None or isinstance(value, model):
        return value
    return model.model_validate(value)


def issue_codes(res: List[ValidationFieldIssue]) -> List[str]:
    return [r.code for r in res]


def has_issues(res: List[ValidationFieldIssue]) -> bool:
    return len(res) > 0
