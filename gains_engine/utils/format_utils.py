# gains_engine/utils/format_utils.py
import logging
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Any, Optional, Union

import gains_engine.config as config
from gains_engine.utils.type_utils import is_number, safe_decimal

logger = logging.getLogger(__name__)

NBSP = "\u00a0"


def _group_thousands(integer_digits: str) -> str:
    # pt-PT only groups once the integer part reaches five digits ("1234" but "12 345")
    if len(integer_digits) < 5:
        return integer_digits
    groups = []
    while integer_digits:
        groups.insert(0, integer_digits[-3:])
        integer_digits = integer_digits[:-3]
    return NBSP.join(groups)


def format_currency(value: Any,
                    minimum_fraction_digits: Optional[int] = None,
                    maximum_fraction_digits: Optional[int] = None,
                    currency_symbol: str = "€") -> str:
    """
    Formats a value as a pt-PT EUR amount, e.g. '1234,56 €' or '-12 345,67 €'.

    Defaults to 2 decimals; non-zero values smaller than one cent get 4 so they do not
    show as zero. An inconsistent pair (minimum > maximum) is clamped, never rejected.
    """
    dec_value = safe_decimal(value, default=Decimal("0"))

    is_tiny = dec_value != 0 and abs(dec_value) < config.TINY_VALUE_THRESHOLD
    default_digits = config.TINY_VALUE_FRACTION_DIGITS if is_tiny else config.DEFAULT_FRACTION_DIGITS

    min_digits = default_digits if minimum_fraction_digits is None else max(0, int(minimum_fraction_digits))
    max_digits = default_digits if maximum_fraction_digits is None else max(0, int(maximum_fraction_digits))
    max_digits = min(max_digits, config.MAX_FRACTION_DIGITS)
    min_digits = min(min_digits, config.MAX_FRACTION_DIGITS)
    if min_digits > max_digits:
        min_digits = max_digits

    # Local precision wide enough for every integer digit plus the requested decimals
    ctx = Context(prec=max(config.INTERNAL_CALCULATION_PRECISION, dec_value.adjusted() + max_digits + 2),
                  rounding=ROUND_HALF_UP)
    quantized = dec_value.quantize(Decimal(1).scaleb(-max_digits), context=ctx)
    sign = "-" if quantized < 0 else ""
    integer_part, _, fraction_part = f"{quantized.copy_abs():f}".partition(".")

    # Trailing zeros beyond the minimum are dropped, as Intl.NumberFormat does
    fraction_part = fraction_part.ljust(max_digits, "0")
    while len(fraction_part) > min_digits and fraction_part.endswith("0"):
        fraction_part = fraction_part[:-1]

    number = _group_thousands(integer_part)
    if fraction_part:
        number = f"{number},{fraction_part}"
    return f"{sign}{number}{NBSP}{currency_symbol}"


def calculate_annualized_return(net_return: Any, cost_basis: Any, days_held: Any) -> Union[Decimal, str]:
    """
    Annualized return in percent: (net_return / |cost_basis|) * (365 / days_held) * 100.
    Returns 'N/A' when the inputs are not numbers, the cost basis is zero or the
    holding period is not positive.
    """
    if not is_number(net_return) or not is_number(cost_basis):
        return 'N/A'

    days = safe_decimal(days_held) if not isinstance(days_held, bool) else None
    if days is None or days <= 0:
        return 'N/A'

    cost = safe_decimal(cost_basis)
    if cost == 0:
        return 'N/A'

    net = safe_decimal(net_return)
    return (net / abs(cost)) * (Decimal(365) / days) * Decimal(100)


def format_percentage(value: Any, places: int = 2) -> str:
    """'12.34%' for numbers; 'N/A' (or anything non-numeric) comes back as 'N/A'."""
    dec_value = safe_decimal(value) if is_number(value) else None
    if dec_value is None:
        return 'N/A'
    quantized = dec_value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return f"{quantized:f}%"
