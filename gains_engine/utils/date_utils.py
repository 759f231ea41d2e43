# gains_engine/utils/date_utils.py
import logging
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

import gains_engine.config as config
from gains_engine.utils.type_utils import FieldAccessor, get_field

logger = logging.getLogger(__name__)

_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")     # YYYY-MM-DD
_DAY_FIRST_PATTERN = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")    # DD-MM-YYYY

DateLike = Union[str, date, None]


def parse_date(date_str: Any) -> Optional[date]:
    """
    Parses a date in either DD-MM-YYYY or YYYY-MM-DD form.
    Returns None for any other shape and for calendar-invalid dates (31-02-2023 does
    not roll over into March). Never raises.
    """
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not isinstance(date_str, str):
        return None

    s_date_str = date_str.strip()
    if not s_date_str:
        return None

    match = _ISO_DATE_PATTERN.match(s_date_str)
    if match:
        year, month, day = (int(part) for part in match.groups())
    else:
        match = _DAY_FIRST_PATTERN.match(s_date_str)
        if not match:
            return None
        day, month, year = (int(part) for part in match.groups())

    try:
        parsed = date(year, month, day)
    except ValueError:
        return None

    # Components must survive the round trip unchanged
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        return None
    return parsed


def get_year(date_str: DateLike) -> Optional[int]:
    d = parse_date(date_str)
    return d.year if d else None


def get_year_string(date_str: DateLike) -> Optional[str]:
    year = get_year(date_str)
    return str(year) if year else None


def get_month_index(date_str: DateLike) -> Optional[int]:
    """Zero-based month (0 = January)."""
    d = parse_date(date_str)
    return d.month - 1 if d else None


def get_month(date_str: DateLike) -> str:
    d = parse_date(date_str)
    return f"{d.month:02d}" if d else ""


def get_day(date_str: DateLike) -> str:
    d = parse_date(date_str)
    return f"{d.day:02d}" if d else ""


def calculate_days_held(start_date_str: DateLike, end_date_str: DateLike = None,
                        today: Optional[date] = None) -> Union[int, str]:
    """
    Days between two dates, at least 1 (same-day closes count as one day held).
    Without an end date the position is treated as still open and `today` is used.
    Returns 'N/A' if either date is unparseable or the end precedes the start.
    """
    start_date = parse_date(start_date_str)
    if end_date_str is None:
        end_date = today or date.today()
    else:
        end_date = parse_date(end_date_str)

    if not start_date or not end_date or end_date < start_date:
        return 'N/A'

    return max(1, (end_date - start_date).days)


def is_all_years(selected_year: Optional[str]) -> bool:
    """The 'all years' sentinel and an empty selection both mean no period filter."""
    return selected_year is None or selected_year in (config.ALL_YEARS_OPTION, config.NO_YEAR_SELECTED)


def filter_by_year(items: Optional[Iterable[Any]], date_accessor: FieldAccessor, year: str) -> List[Any]:
    """Keeps the items whose date (resolved through date_accessor) falls in the given calendar year."""
    return [item for item in (items or []) if get_year_string(get_field(item, date_accessor)) == year]


def extract_years_from_data(data: Optional[Dict[str, Any]], date_field_accessors: Optional[Dict[str, Optional[FieldAccessor]]]) -> List[str]:
    """
    Collects the distinct years present across several named sources.

    For list sources every item is resolved to a date through its accessor (a field
    name or a callable). The dividend summary source, and any source given as a
    mapping, is keyed by year already, so its top-level keys are used directly.
    Returns year strings sorted newest first.
    """
    years_set = set()
    if not data or not date_field_accessors:
        return []

    for source_name, accessor in date_field_accessors.items():
        items = data.get(source_name)
        if items is None:
            continue

        if source_name == config.DIVIDEND_SUMMARY_SOURCE or isinstance(items, Mapping):
            for year_key in items.keys():
                try:
                    years_set.add(int(str(year_key)))
                except ValueError:
                    logger.debug(f"Ignoring non-numeric year key '{year_key}' in source '{source_name}'.")
            continue

        if accessor is None:
            logger.warning(f"No date accessor given for list source '{source_name}'. Skipping it for year extraction.")
            continue

        for item in items:
            year = get_year(get_field(item, accessor))
            if year:
                years_set.add(year)

    return [str(y) for y in sorted(years_set, reverse=True)]
