"""
Utility functions for asset accounting
"""

from .date_utils import (
    eomonth,
    months_between,
    month_key,
    month_label,
    start_of_year,
    trailing_month_ends,
    parse_date,
)

__all__ = [
    # Date utilities
    'eomonth',
    'months_between',
    'month_key',
    'month_label',
    'start_of_year',
    'trailing_month_ends',
    'parse_date',
]
