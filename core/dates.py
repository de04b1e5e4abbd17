"""Date normalization for ledger payloads.

Upstream services disagree on how dates travel: loan snapshots carry
``[year, month, day]`` lists, console forms post ``"12 March 2024"`` and
some endpoints return ISO strings. Every rule compares dates only after
passing them through :func:`parse_date_value`, which reduces all of these to
a :class:`datetime.date` (day granularity) or ``None``.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable, Optional

import pandas as pd

from core.presets import FINERACT_DATE_FORMAT


def _from_iso(text: str) -> date:
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def _from_platform_format(text: str) -> date:
    return datetime.strptime(text, FINERACT_DATE_FORMAT).date()


# pandas fills a missing year (or whole date) from the clock, so require one.
YEAR_PATTERN = re.compile(r"\d{4}")


def _from_generic(text: str) -> date:
    if not YEAR_PATTERN.search(text):
        raise ValueError(f"no year in date: {text!r}")
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        raise ValueError(f"unparseable date: {text!r}")
    return parsed.date()


# Tried in order; the first parser that succeeds wins.
PARSE_ATTEMPTS = (_from_iso, _from_platform_format, _from_generic)


def _from_parts(value) -> Optional[date]:
    year, month, day = value[:3]
    parts = (year, month, day)
    if not all(isinstance(p, int) and not isinstance(p, bool) for p in parts):
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_value(value: Any) -> Optional[date]:
    """Normalize ``value`` to a calendar day, or ``None`` when unknown.

    Accepts ``date``/``datetime`` objects, ``[year, month, day]`` sequences
    (1-based months), ISO-8601 strings, ``"dd MMMM yyyy"`` strings and any
    other string pandas can parse. Never raises.
    """
    if value is None or value == "" or value is False:
        return None
    if isinstance(value, datetime):
        return None if pd.isna(value) else value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (list, tuple)):
        return _from_parts(value) if len(value) >= 3 else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    for attempt in PARSE_ATTEMPTS:
        try:
            return attempt(text)
        except (ValueError, TypeError, OverflowError):
            continue
    return None


def max_date(candidates: Iterable[Optional[date]]) -> Optional[date]:
    """Latest non-null date among ``candidates``, or ``None``."""
    known = [d for d in candidates if d is not None]
    return max(known) if known else None
