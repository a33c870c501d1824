"""Date parsing for sales rows.

Two textual formats are accepted: ``DD-MM-YYYY`` and ``YYYY-MM-DD``.
Parsing is total: anything that is not a real calendar date in one of those
formats yields ``None`` instead of raising.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Any, Optional

_DAY_FIRST = re.compile(r"([0-9]{2})-([0-9]{2})-([0-9]{4})")
_YEAR_FIRST = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")


@dataclass(frozen=True)
class ParsedDate:
    """A validated calendar date plus the grouping keys derived from it."""

    year: int
    month: int
    day: int
    # 0 = Sunday .. 6 = Saturday
    day_of_week: int
    # Monday that starts the ISO week, formatted YYYY-MM-DD
    week_key: str

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def week_key(day: dt.date) -> str:
    """Return the Monday on or before ``day`` as ``YYYY-MM-DD``."""
    monday = day - dt.timedelta(days=day.weekday())
    return monday.isoformat()


def date_to_text(value: Any) -> Any:
    """Render date and datetime cells (spreadsheets, pandas) as ``YYYY-MM-DD``."""
    if isinstance(value, (dt.datetime, dt.date)):
        return value.strftime("%Y-%m-%d")
    return value


def parse_date(value: Any) -> Optional[ParsedDate]:
    """Parse a ``DD-MM-YYYY`` or ``YYYY-MM-DD`` string.

    Returns None for non-strings, empty strings, other layouts, month outside
    1-12, day outside 1-31, and dates that do not exist (e.g. 31-02-2025).
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()

    match = _DAY_FIRST.fullmatch(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
    else:
        match = _YEAR_FIRST.fullmatch(text)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups())

    if month < 1 or month > 12 or day < 1 or day > 31:
        return None

    try:
        calendar_day = dt.date(year, month, day)
    except ValueError:
        # Day overflows the month, or year 0000.
        return None

    return ParsedDate(
        year=year,
        month=month,
        day=day,
        day_of_week=(calendar_day.weekday() + 1) % 7,
        week_key=week_key(calendar_day),
    )
