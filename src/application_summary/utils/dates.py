"""Date parsing and display formats used on the summary."""

from datetime import date, datetime
from typing import Any, Optional, Union

from dateutil import parser as date_parser

DISPLAY_DATE_FORMAT = "%d/%m/%Y"
DISPLAY_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 style timestamp.

    Returns None for empty input; raises ValueError for unparseable text.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    return date_parser.isoparse(value)


def format_date(value: Union[str, date, datetime, None]) -> str:
    """Format a date value as DD/MM/YYYY, leaving unparseable text as is."""
    if value is None or value == "":
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime(DISPLAY_DATE_FORMAT)
    try:
        return date_parser.isoparse(str(value)).strftime(DISPLAY_DATE_FORMAT)
    except ValueError:
        try:
            return date_parser.parse(str(value), dayfirst=True).strftime(DISPLAY_DATE_FORMAT)
        except (ValueError, OverflowError):
            return str(value)


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime(DISPLAY_TIMESTAMP_FORMAT)
