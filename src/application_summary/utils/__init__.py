"""
Shared utilities: logging setup and date formatting.
"""

from .dates import format_date, format_timestamp, parse_timestamp
from .logger import get_logger, setup_logging

__all__ = [
    'format_date',
    'format_timestamp',
    'parse_timestamp',
    'get_logger',
    'setup_logging',
]
