# gains_engine/utils/type_utils.py
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional, Union

FieldAccessor = Union[str, Callable[[Any], Any]]


def safe_decimal(value: Any, default: Optional[Decimal] = None, raise_error: bool = False) -> Optional[Decimal]:
    """
    Safely converts a value to a Decimal.
    Handles None, bools, empty strings, strings with commas (as thousands or decimal).
    If default is provided, returns default on conversion error.
    If raise_error is True, re-raises InvalidOperation instead of returning default.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() first so 0.1 becomes Decimal('0.1') and not its binary expansion
        result = Decimal(str(value))
        return result if result.is_finite() else default

    s_value = str(value).strip()
    if not s_value:
        return default

    try:
        if '.' in s_value and ',' in s_value:
            # Whichever separator comes last is the decimal point: "1,234.56" or "1.234,56"
            if s_value.rfind(',') > s_value.rfind('.'):
                s_value = s_value.replace('.', '').replace(',', '.')
            else:
                s_value = s_value.replace(',', '')
        elif ',' in s_value and '.' not in s_value: # e.g., "12,34"
            s_value = s_value.replace(',', '.')
        result = Decimal(s_value)
    except InvalidOperation as e:
        if raise_error:
            raise e
        return default
    return result if result.is_finite() else default


def is_number(value: Any) -> bool:
    """True for real numeric values (Decimal, int, float), excluding bools, NaN and infinities."""
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value == value and value not in (float("inf"), float("-inf"))
    return False


def get_field(item: Any, accessor: FieldAccessor, default: Any = None) -> Any:
    """
    Resolves a field on a record that may be a pydantic model, a dataclass or a plain dict.
    The accessor is either an attribute/key name or a callable taking the item.
    """
    if item is None:
        return default
    if callable(accessor):
        return accessor(item)
    if isinstance(item, Mapping):
        return item.get(accessor, default)
    return getattr(item, accessor, default)
