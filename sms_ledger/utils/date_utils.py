"""Date manipulation utilities"""

from datetime import datetime
from typing import Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

MONTH_ABBREVIATIONS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}


def format_timestamp(moment: datetime) -> str:
    """Render a datetime in the single format used across the ledger"""
    return moment.strftime(TIMESTAMP_FORMAT)


def expand_year(year: str) -> int:
    """Two-digit years are assumed to be 20xx"""
    value = int(year)
    return 2000 + value if len(year) == 2 else value


def month_from_name(name: str) -> Optional[int]:
    """Map 'Jan', 'JAN' or 'January' to a month number"""
    return MONTH_ABBREVIATIONS.get(name[:3].upper())


def build_timestamp(
    year: int,
    month: int,
    day: int,
    hour: Optional[str] = None,
    minute: Optional[str] = None,
    second: Optional[str] = None,
) -> Optional[datetime]:
    """Build a datetime from matched parts, None when the date is impossible"""
    try:
        return datetime(
            year,
            month,
            day,
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
        )
    except ValueError:
        return None
