# gains_engine/reporting/reporting_utils.py
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union
from datetime import date

import gains_engine.config as config # For precision settings
from gains_engine.utils.date_utils import parse_date

logger = logging.getLogger(__name__)

Quantizable = Optional[Union[Decimal, int, float, str]]


def _to_decimal(val: Quantizable, caller: str) -> Optional[Decimal]:
    if isinstance(val, Decimal):
        return val
    try:
        return Decimal(str(val))
    except InvalidOperation:
        logger.error(f"Could not convert value '{val}' of type {type(val)} to Decimal in {caller}. Returning zero.")
        return None


def _q(val: Quantizable) -> Decimal:
    """Quantize a total amount to cents, handling None, int, float, str."""
    if val is None:
        return Decimal('0.00')
    dec = _to_decimal(val, '_q')
    if dec is None:
        return Decimal('0.00')
    return dec.quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)


def _q_price(val: Quantizable) -> Decimal:
    """Quantize a per-share price."""
    dec = _to_decimal(val, '_q_price') if val is not None else None
    if dec is None:
        return Decimal('0').quantize(config.OUTPUT_PRECISION_PER_SHARE, rounding=ROUND_HALF_UP)
    return dec.quantize(config.OUTPUT_PRECISION_PER_SHARE, rounding=ROUND_HALF_UP)


def _q_qty(val: Quantizable) -> Decimal:
    """Quantize a quantity."""
    dec = _to_decimal(val, '_q_qty') if val is not None else None
    if dec is None:
        return Decimal('0').quantize(config.PRECISION_QUANTITY, rounding=ROUND_HALF_UP)
    return dec.quantize(config.PRECISION_QUANTITY, rounding=ROUND_HALF_UP)


def format_date_pt(dt: Optional[Union[date, str]]) -> str:
    """Formats a date or a DD-MM-YYYY / YYYY-MM-DD string as DD/MM/YYYY. Unparseable strings come back unchanged."""
    if dt is None:
        return ""
    parsed = parse_date(dt)
    if parsed is None:
        return str(dt)
    return parsed.strftime("%d/%m/%Y")


def format_optional_amount(val: Optional[Decimal]) -> str:
    """Amounts that have no meaning in a view (e.g. unrealized P/L of a closed year) print as N/A."""
    return 'N/A' if val is None else str(_q(val))
