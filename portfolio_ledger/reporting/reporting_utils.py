# portfolio_ledger/reporting/reporting_utils.py
import logging
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Any
from datetime import date

from portfolio_ledger import config # For precision settings
from portfolio_ledger.utils.type_utils import is_nan


logger = logging.getLogger(__name__)


def _to_decimal(val: Any, caller: str) -> Optional[Decimal]:
    if isinstance(val, Decimal):
        return val
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError):
        logger.error(f"Could not convert value '{val}' of type {type(val)} to Decimal in {caller}.")
        return None


def _quantize(val: Any, precision: Decimal, caller: str) -> Decimal:
    zero = Decimal('0').quantize(precision, rounding=ROUND_HALF_UP)
    if val is None:
        return zero
    dec_value = _to_decimal(val, caller)
    if dec_value is None or not dec_value.is_finite():
        return zero
    return dec_value.quantize(precision, rounding=ROUND_HALF_UP)


def _q(val: Optional[Decimal | int | float | str]) -> Decimal:
    """Quantize Decimal value for total amounts, handling None, int, float, str."""
    return _quantize(val, config.OUTPUT_PRECISION_AMOUNTS, "_q")


def _q_price(val: Optional[Decimal | int | float | str]) -> Decimal:
    """Quantize Decimal value for per-share prices."""
    return _quantize(val, config.OUTPUT_PRECISION_PER_SHARE, "_q_price")


def _q_qty(val: Optional[Decimal | int | float | str]) -> Decimal:
    return _quantize(val, config.PRECISION_QUANTITY, "_q_qty")


def _strip_trailing_zeros(text: str) -> str:
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    if text in ('-0', ''):
        return '0'
    return text


def format_number_for_csv(value: Optional[Decimal | int | float | str]) -> str:
    """
    At most CSV_MAX_DECIMALS decimals, trailing zeros dropped, comma as decimal separator.
    Missing or non-numeric values are written as "0,00".
    """
    if value is None:
        return '0,00'
    dec_value = _to_decimal(value, "format_number_for_csv")
    if dec_value is None or is_nan(dec_value) or not dec_value.is_finite():
        return '0,00'
    precision = Decimal(1).scaleb(-config.CSV_MAX_DECIMALS)
    text = f"{dec_value.quantize(precision, rounding=ROUND_HALF_UP):f}"
    return _strip_trailing_zeros(text).replace('.', ',')


def format_exchange_rate(rate: Optional[Decimal | int | float | str]) -> str:
    """Up to CSV_MAX_RATE_DECIMALS decimals with a comma separator; missing, NaN and 1 are written as "1"."""
    if rate is None:
        return '1'
    dec_rate = _to_decimal(rate, "format_exchange_rate")
    if dec_rate is None or not dec_rate.is_finite() or dec_rate == Decimal('1'):
        return '1'
    precision = Decimal(1).scaleb(-config.CSV_MAX_RATE_DECIMALS)
    text = f"{dec_rate.quantize(precision, rounding=ROUND_HALF_UP):f}"
    return _strip_trailing_zeros(text).replace('.', ',')


def format_percent_for_csv(value: Optional[Decimal | int | float | str]) -> str:
    return f"{format_number_for_csv(value)}%"


def format_date_dmy(dt: Optional[date | str]) -> str:
    """Formats a date object or YYYY-MM-DD string to DD/MM/YYYY string."""
    if dt is None:
        return ""
    if isinstance(dt, str):
        try:
            dt = date.fromisoformat(dt)
        except ValueError:
            return dt # Return original string if parsing fails
    if isinstance(dt, date):
        return dt.strftime("%d/%m/%Y")
    return str(dt)


def format_amount_for_display(value: Optional[Decimal], precision_type: str = "total") -> str:
    """Console/PDF rendering: quantized with the output precision, comma as decimal separator."""
    if value is None:
        return "-"
    if is_nan(value):
        return "NaN"
    if precision_type == "price":
        text = f"{_q_price(value):f}"
    elif precision_type == "quantity":
        text = _strip_trailing_zeros(f"{_q_qty(value):f}")
    else:
        text = f"{_q(value):f}"
    return text.replace('.', ',')
