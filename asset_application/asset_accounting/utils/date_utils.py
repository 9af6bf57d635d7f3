"""
Date utilities for asset accounting
Calendar-month arithmetic used by the depreciation calculator and reports
"""

from datetime import date, datetime, timedelta
from dateutil.relativedelta import relativedelta
from typing import List, Optional, Union


def eomonth(d: date, months: int = 0) -> date:
    """
    Calculate end of month
    Args:
        d: Starting date
        months: Number of months to add/subtract
    Returns:
        Last day of the month, adjusted by months
    """
    target_month = d + relativedelta(months=months)
    first_of_next = date(target_month.year, target_month.month, 1) + relativedelta(months=1)
    return first_of_next - timedelta(days=1)


def months_between(start: date, end: date, inclusive: bool = True) -> int:
    """
    Count calendar months from start to end.

    Only year and month are compared; the day of month is ignored. With
    inclusive counting the starting month counts as well, so a purchase
    in January viewed in January is one month old.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if inclusive:
        months += 1
    return months


def month_key(d: date) -> str:
    """YYYY-MM key used for month filters"""
    return d.strftime('%Y-%m')


def month_label(d: date) -> str:
    """Short label for chart axes, e.g. 'Jan 2024'"""
    return d.strftime('%b %Y')


def start_of_year(d: date) -> date:
    return date(d.year, 1, 1)


def trailing_month_ends(as_of: date, count: int = 12) -> List[date]:
    """Month ends of the trailing `count` months, oldest first, ending with as_of's month"""
    return [eomonth(as_of, -offset) for offset in range(count - 1, -1, -1)]


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Parse an ISO date string (YYYY-MM-DD); datetimes are truncated to their date"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except (ValueError, TypeError):
        return None
