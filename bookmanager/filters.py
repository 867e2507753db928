"""Template filters."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any


def is_overdue(value: Any) -> bool:
    """True while today is still before the given date."""
    if isinstance(value, datetime):
        due = value.date()
    elif isinstance(value, date):
        due = value
    elif isinstance(value, str):
        try:
            due = date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValueError(
                f"Filter `is_overdue` received an incorrect type for arg `date`: {value!r}"
            ) from exc
    else:
        raise TypeError(
            f"Filter `is_overdue` received an incorrect type for arg `date`: {value!r}"
        )
    return date.today() < due