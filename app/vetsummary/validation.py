"""
Normalization utilities for model output.

Handles:
- Date normalization to ISO YYYY-MM-DD
- Data cleaning (null removal from arrays, blank strings)
"""

import logging
import re
from datetime import datetime
from typing import Any

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")
_SLASH_DATE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})$")
_YEAR = re.compile(r"\d{4}")

# Missing day/month in written dates resolve to the first of the period
_DATE_DEFAULT = datetime(1900, 1, 1)


def parse_date(value: Any) -> str | None:
    """
    Parse various date formats to YYYY-MM-DD.

    US order (MM/DD/YYYY) is tried before European order (DD/MM/YYYY).
    Values without a four digit year are rejected so that bare numbers
    or words never turn into a date. Returns None if parsing fails.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)

    value = value.strip()
    if not value:
        return None

    # ISO format first, optionally with a time part
    match = _ISO_DATE.match(value)
    if match:
        try:
            return datetime.strptime(match.group(1), "%Y-%m-%d").strftime("%Y-%m-%d")
        except ValueError:
            return None

    match = _SLASH_DATE.match(value)
    if match:
        first, second, year = (int(part) for part in match.groups())
        for month, day in ((first, second), (second, first)):
            try:
                return datetime(year, month, day).strftime("%Y-%m-%d")
            except ValueError:
                continue
        return None

    if not _YEAR.search(value):
        return None

    # Written formats ("Jan 15, 2024", "15 January 2024", "March 2023")
    try:
        dt = date_parser.parse(value, default=_DATE_DEFAULT)
        return dt.strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        logger.debug("Could not parse date value: %r", value)
        return None


def clean_null_from_arrays(
    data: dict[str, Any] | list[Any] | Any,
) -> dict[str, Any] | list[Any] | Any:
    """
    Recursively remove None/null values from arrays in the data structure.

    Models occasionally pad arrays with nulls when asked for lists.
    """
    if isinstance(data, dict):
        return {k: clean_null_from_arrays(v) for k, v in data.items()}
    elif isinstance(data, list):
        filtered = [x for x in data if x is not None]
        return [clean_null_from_arrays(item) for item in filtered]
    else:
        return data


def blank_to_none(value: Any) -> Any:
    """Treat empty and placeholder strings as missing."""
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or stripped.lower() in ("null", "none", "n/a", "unknown"):
            return None
        return stripped
    return value
