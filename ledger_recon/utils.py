"""
Utility functions for the reconciliation system.

This module contains helpers shared by the parsers, the ledger importer and
the command line entry point: logging setup and the low-level date and amount
cleaning used before values reach the canonical transaction model.
"""

import os
import re
import logging
from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# Slash dates are month-first unless the first part has four digits
_SLASH_DATE = re.compile(r'^(\d{1,4})/(\d{1,2})/(\d{1,4})$')
_DASH_DATE = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?')
_COMPACT_DATE = re.compile(r'^(\d{4})(\d{2})(\d{2})')


def setup_logging(debug=False, log_level='info'):
    """Configure logging for the application."""
    # Determine log level
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Get log file path from environment or use default
    log_file = os.getenv('LOG_FILE', 'debug.log')

    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=level,
        format=format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    return log_file


def _expand_year(year):
    # Two digit years are always 20xx
    return year + 2000 if year < 100 else year


def parse_date(date_str, utc_offset_hours=None):
    """Convert a statement date string to a calendar date.

    Accepted forms are ``MM/DD/YYYY``, ``MM/DD/YY``, ``YYYY/MM/DD``,
    ``YYYY-MM-DD`` with an optional ``HH:MM[:SS]`` time, and compact
    ``YYYYMMDD``. No timezone conversion is applied unless
    ``utc_offset_hours`` is given, in which case a dash-form value is read as
    a UTC timestamp, shifted back by that many hours, and truncated to the
    resulting day.

    Args:
        date_str (str): Date string to parse
        utc_offset_hours (int, optional): Hours to subtract from UTC timestamps

    Returns:
        datetime.date: Parsed calendar date

    Raises:
        ValueError: If date is null, not a string, or invalid format
    """
    if date_str is None or (not isinstance(date_str, str) and pd.isna(date_str)):
        raise ValueError("Date cannot be null")

    if not isinstance(date_str, str):
        raise ValueError(f"Date must be a string, got {type(date_str)}")

    # Remove quotes and extra whitespace
    date_str = date_str.strip().strip('"\'')

    match = _SLASH_DATE.match(date_str)
    if match:
        first, second, third = (int(part) for part in match.groups())
        if len(match.group(1)) == 4:
            return date(first, second, third)
        return date(_expand_year(third), first, second)

    match = _DASH_DATE.match(date_str)
    if match:
        year, month, day = (int(part) for part in match.groups()[:3])
        if utc_offset_hours is None:
            return date(year, month, day)
        hour = int(match.group(4) or 0)
        minute = int(match.group(5) or 0)
        second = int(match.group(6) or 0)
        stamp = datetime(year, month, day, hour, minute, second)
        shifted = stamp - timedelta(hours=utc_offset_hours)
        logger.debug(f"Shifted UTC {stamp} by -{utc_offset_hours}h to {shifted.date()}")
        return shifted.date()

    match = _COMPACT_DATE.match(date_str)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return date(year, month, day)

    raise ValueError(f"Invalid date format: {date_str}")


def clean_amount(amount):
    """Clean and standardize amount values.

    Args:
        amount (str or float): Amount to clean

    Returns:
        float: Cleaned signed amount, or NaN when the input is null

    Raises:
        ValueError: If amount cannot be converted to float
    """
    if amount is None or (isinstance(amount, str) and amount.strip() == ""):
        raise ValueError("Invalid amount format: None or empty string")
    if isinstance(amount, (int, float)):
        return float(amount)
    if not isinstance(amount, str):
        if pd.isna(amount):
            return np.nan
        raise ValueError(f"Amount must be string or number, got {type(amount)}")

    # Remove quotes, currency symbols, commas, and whitespace
    cleaned = re.sub(r'[$,"]', '', amount.strip())

    # Handle parentheses for negative numbers
    if cleaned.startswith('(') and cleaned.endswith(')'):
        cleaned = '-' + cleaned[1:-1]

    try:
        return float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid amount format: {amount}")


def to_cents(value):
    """Round a float amount to two decimals."""
    return round(float(value), 2)
