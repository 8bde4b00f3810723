"""Strict date-of-birth parsing.

Malformed input is an expected case: callers get None back, never an
exception.
"""

import re
from datetime import date, datetime
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"

# strptime alone accepts single-digit months/days ("2000-5-1"), so the
# shape is checked first.
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_date_of_birth(text: str) -> Optional[date]:
    """Parse a YYYY-MM-DD calendar date.

    Args:
        text: Raw text sent by the user.

    Returns:
        The date, or None if the text is not exactly four-digit year,
        two-digit month and two-digit day forming a real calendar date
        (e.g. "2023-02-29" and "2024-04-31" are rejected).
    """
    if not isinstance(text, str) or not _DATE_RE.fullmatch(text):
        return None

    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def is_valid_date_of_birth(text: str) -> bool:
    return parse_date_of_birth(text) is not None
