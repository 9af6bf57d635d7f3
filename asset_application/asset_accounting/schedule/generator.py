"""
Depreciation Schedule Generator
Builds the fixed-asset depreciation register: one row per asset plus a totals row
"""

from datetime import date
from typing import Dict, Iterable, List
import logging

from asset_application.asset_accounting.core.calculator import depreciate_asset
from asset_application.asset_accounting.core.filters import filter_assets
from asset_application.asset_accounting.core.models import (
    Asset,
    DepreciationSchedule,
    ScheduleFilters,
    ScheduleRow,
)
from asset_application.asset_accounting.utils.date_utils import month_key

logger = logging.getLogger(__name__)

# Totals over non-disposed rows only
ACTIVE_TOTAL_FIELDS = [
    'cost_final_balance',
    'remaining_cost',
    'opening_depreciation',
    'monthly_depreciation',
    'closing_depreciation',
    'net_book_value',
]

# Totals over every row
ALL_TOTAL_FIELDS = [
    'disposal',
    'disposal_depreciation',
]


def generate_schedule(assets: Iterable[Asset], filters: ScheduleFilters) -> DepreciationSchedule:
    """
    Generate the depreciation schedule for the filtered assets.

    Rows keep the input order and are numbered from 1.
    """
    as_of = filters.as_of_date or date.today()
    selected = filter_assets(assets, category=filters.category, month=filters.month)

    rows = []
    for index, asset in enumerate(selected, start=1):
        record = depreciate_asset(
            asset,
            as_of_date=as_of,
            counting=filters.counting,
            default_useful_life=filters.default_useful_life,
        )
        rows.append(ScheduleRow(
            no=index,
            asset_id=asset.asset_id,
            asset_code=asset.asset_code,
            asset_name=asset.name,
            category=asset.category,
            purchase_date=asset.purchase_date,
            record=record,
        ))

    schedule = DepreciationSchedule(rows=rows, totals=calculate_totals(rows), as_of_date=as_of)
    logger.debug(f"📊 Schedule generated: {len(rows)} rows as of {as_of}")
    return schedule


def calculate_totals(rows: List[ScheduleRow]) -> Dict[str, float]:
    """Totals row for the schedule"""
    totals = {name: 0.0 for name in ACTIVE_TOTAL_FIELDS + ALL_TOTAL_FIELDS}
    for row in rows:
        for name in ALL_TOTAL_FIELDS:
            totals[name] += getattr(row.record, name)
        if row.record.is_disposed:
            continue
        for name in ACTIVE_TOTAL_FIELDS:
            totals[name] += getattr(row.record, name)
    return {name: round(value, 2) for name, value in totals.items()}


def available_months(assets: Iterable[Asset]) -> List[str]:
    """Distinct purchase months (YYYY-MM), newest first"""
    months = {month_key(asset.purchase_date) for asset in assets if asset.purchase_date}
    return sorted(months, reverse=True)


def available_categories(assets: Iterable[Asset]) -> List[str]:
    """Distinct non-empty categories, alphabetical"""
    return sorted({asset.category for asset in assets if asset.category})
