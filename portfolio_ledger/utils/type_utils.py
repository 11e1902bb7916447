from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from datetime import datetime, date

from dateutil import parser as dateutil_parser

NAN = Decimal("NaN")
ZERO = Decimal("0")


def safe_decimal(value: Any, default: Optional[Decimal] = None, raise_error: bool = False) -> Optional[Decimal]:
    """
    Safely converts a value to a Decimal.
    Handles None, empty strings, strings with commas (as thousands or decimal).
    If default is provided, returns default on conversion error.
    If raise_error is True, re-raises InvalidOperation instead of returning default.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        # bool is an int subclass; a True/False price is a data error, not 1/0
        if raise_error:
            raise InvalidOperation(f"Boolean value {value!r} is not a number")
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    s_value = str(value).strip()
    if not s_value:
        return default

    try:
        # "1,234.56" -> thousands separator, "12,34" -> decimal comma
        if '.' in s_value and ',' in s_value:
            s_value = s_value.replace(',', '')
        elif ',' in s_value and '.' not in s_value:
            s_value = s_value.replace(',', '.')
        return Decimal(s_value)
    except InvalidOperation as e:
        if raise_error:
            raise e
        return default


def parse_date(date_value: Any, default: Optional[date] = None) -> Optional[date]:
    """
    Parses the date formats the transaction store and spreadsheet exports use
    (YYYY-MM-DD, ISO timestamps, DD/MM/YYYY, DD.MM.YYYY, YYYYMMDD).
    Returns a datetime.date object or default.
    """
    if isinstance(date_value, datetime):
        return date_value.date()
    if isinstance(date_value, date):
        return date_value
    if not date_value or not str(date_value).strip():
        return default

    s_date_str = str(date_value).strip()

    # ISO timestamps ("2024-03-01T00:00:00.000Z") keep only the date part
    date_part = s_date_str.split('T')[0].split(' ')[0]

    formats_to_try = [
        "%Y-%m-%d",
        "%d/%m/%Y",
        "%d.%m.%Y",
        "%Y%m%d",
    ]
    for fmt in formats_to_try:
        try:
            return datetime.strptime(date_part, fmt).date()
        except ValueError:
            continue

    try:
        return dateutil_parser.parse(s_date_str, dayfirst=True).date()
    except (ValueError, TypeError, OverflowError):
        return default


def is_nan(value: Decimal) -> bool:
    return isinstance(value, Decimal) and value.is_nan()


def is_greater_than(value: Decimal, threshold: Decimal) -> bool:
    """Ordering comparison that answers False for NaN instead of raising InvalidOperation."""
    if is_nan(value) or is_nan(threshold):
        return False
    return value > threshold


def is_at_most(value: Decimal, threshold: Decimal) -> bool:
    """Ordering comparison that answers False for NaN instead of raising InvalidOperation."""
    if is_nan(value) or is_nan(threshold):
        return False
    return value <= threshold


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """
    Divides only over a positive denominator.
    NaN on either side propagates; a zero or negative denominator yields 0 so an
    exactly closed position never produces Infinity.
    """
    if is_nan(numerator) or is_nan(denominator):
        return NAN
    if denominator <= ZERO:
        return ZERO
    return numerator / denominator
