"""Month-resolution date helpers for bulletin cutoffs and DOL "currently processing" strings."""

import re

from pathways.models.profile import MonthYear

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_MONTH_YEAR = re.compile(r"^([a-z]+)\.?\s+(\d{4})$", re.IGNORECASE)

CURRENT = "Current"


def is_current(cutoff: str) -> bool:
    token = cutoff.strip().lower()
    return token in ("current", "c")


def parse_cutoff(cutoff: str) -> MonthYear | None:
    """
    Parse "Jul 2013" / "July 2013" into a MonthYear.

    Returns None for "Current" and for anything unparsable; callers that
    need to tell the two apart check is_current() first.
    """
    if is_current(cutoff):
        return None
    match = _MONTH_YEAR.match(cutoff.strip())
    if not match:
        return None
    month = _MONTHS.get(match.group(1)[:3].lower())
    if month is None:
        return None
    return MonthYear(int(match.group(2)), month)


def months_between(start: MonthYear, end: MonthYear) -> int:
    """Whole months from start to end (negative if end is earlier)."""
    return (end.year - start.year) * 12 + (end.month - start.month)
