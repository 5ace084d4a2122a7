"""
Internal utility functions for wqmonitor.
"""

import math
import re
from typing import Any, Optional

_DATE_RE = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")


def to_float(value: Any) -> Optional[float]:
    """Parse a measurement value; None for anything that is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_date(value: Any) -> Optional[str]:
    """
    Normalize a date key to fixed-width ``YYYY-MM-DD``.

    Latest-date queries compare dates as strings, which is only correct
    when every key has the same width.

    Example:
        >>> normalize_date("2024/5/1 08:30")
        '2024-05-01'
    """
    if value is None:
        return None
    match = _DATE_RE.match(str(value).strip())
    if not match:
        return None
    year, month, day = match.groups()
    return f"{year}-{int(month):02d}-{int(day):02d}"


def blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
