"""
Group key functions for ListState.group_by.

Each returns the group label of a record, or None when the record has no
value for the key.
"""

from typing import Any, Callable, Optional


GroupKey = Callable[[Any], Optional[str]]


def by_attribute(name: str) -> GroupKey:
    def key(record: Any) -> Optional[str]:
        value = getattr(record, name, None)
        return str(value) if value not in (None, "") else None
    return key


def by_month(record: Any) -> Optional[str]:
    """YYYY-MM of the record's month/year, falling back to its date."""
    year = getattr(record, "year", None)
    month = getattr(record, "month", None)
    if year and month:
        return f"{year:04d}-{month:02d}"
    day = getattr(record, "date", None)
    return f"{day.year:04d}-{day.month:02d}" if day else None


def by_year(record: Any) -> Optional[str]:
    year = getattr(record, "year", None)
    if year:
        return str(year)
    day = getattr(record, "date", None)
    return str(day.year) if day else None
