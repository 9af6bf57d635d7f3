"""
Results Processor for the dashboard
Aggregates per-asset depreciation into portfolio figures: headline stats,
the trailing value trend and the category breakdown
"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional
import logging

from asset_application.asset_accounting.core.calculator import depreciate_asset
from asset_application.asset_accounting.core.models import (
    Asset,
    AssetStatus,
    DepreciationRecord,
    ScheduleFilters,
)
from asset_application.asset_accounting.utils.date_utils import (
    month_key,
    month_label,
    parse_date,
    start_of_year,
    trailing_month_ends,
)

logger = logging.getLogger(__name__)


class ResultsProcessor:
    """
    Processes a user's assets and generates dashboard results.

    Every figure is derived from the depreciation calculator as of a single
    reference date, so the dashboard agrees with the schedule.
    """

    def __init__(self, filters: ScheduleFilters):
        self.filters = filters
        self.as_of = filters.as_of_date or date.today()

    def _record(self, asset: Asset, as_of: Optional[date] = None) -> DepreciationRecord:
        return depreciate_asset(
            asset,
            as_of_date=as_of or self.as_of,
            counting=self.filters.counting,
            default_useful_life=self.filters.default_useful_life,
        )

    def summary(self, assets: List[Asset]) -> Dict:
        """
        Headline dashboard metrics

        Returns:
            {
                'total_assets', 'total_value', 'total_depreciation',
                'active_assets', 'maintenance_assets', 'assets_this_month',
                'depreciation_percentage', 'fiscal_year_depreciation'
            }
        """
        total_value = 0.0
        total_depreciation = 0.0
        for asset in assets:
            record = self._record(asset)
            total_value += record.net_book_value
            if not record.is_disposed:
                total_depreciation += record.closing_depreciation

        gross = total_value + total_depreciation
        depreciation_percentage = round(total_depreciation / gross * 100, 1) if gross > 0 else 0.0

        return {
            'total_assets': len(assets),
            'total_value': round(total_value, 2),
            'total_depreciation': round(total_depreciation, 2),
            'active_assets': sum(1 for a in assets if a.status == AssetStatus.ACTIVE.value),
            'maintenance_assets': sum(1 for a in assets if a.status == AssetStatus.MAINTENANCE.value),
            'assets_this_month': self._count_created_this_month(assets),
            'depreciation_percentage': depreciation_percentage,
            'fiscal_year_depreciation': round(self.fiscal_year_depreciation(assets), 2),
            'as_of_date': self.as_of.isoformat(),
        }

    def _count_created_this_month(self, assets: List[Asset]) -> int:
        current = month_key(self.as_of)
        count = 0
        for asset in assets:
            created = parse_date(asset.created_at)
            if created and month_key(created) == current:
                count += 1
        return count

    def fiscal_year_depreciation(self, assets: List[Asset]) -> float:
        """
        Depreciation recognised from 1 January of the as-of year up to the as-of date.

        Closing depreciation now, less closing depreciation at the previous
        year end. Assets bought this year contribute their whole closing
        depreciation. Disposed assets contribute nothing.
        """
        previous_year_end = start_of_year(self.as_of) - timedelta(days=1)

        total = 0.0
        for asset in assets:
            current = self._record(asset)
            if current.is_disposed:
                continue
            opening = self._record(asset, previous_year_end)
            total += max(0.0, current.closing_depreciation - opening.closing_depreciation)
        return total

    def value_trend(self, assets: List[Asset], months: int = 12) -> List[Dict]:
        """
        Total book value at each of the trailing month ends, oldest first.

        An asset counts toward a month once it was purchased on or before
        the date that month is valued at: its last day, or the as-of date
        for the current month.
        """
        trend = []
        for month_end in trailing_month_ends(self.as_of, months):
            reference = min(month_end, self.as_of)
            total = 0.0
            for asset in assets:
                if asset.purchase_date is None or asset.purchase_date > reference:
                    continue
                total += self._record(asset, reference).net_book_value
            trend.append({
                'month': month_label(month_end),
                'month_key': month_key(month_end),
                'value': round(total),
            })
        return trend

    def category_breakdown(self, assets: List[Asset]) -> List[Dict]:
        """Current book value per category, largest first"""
        totals: Dict[str, float] = {}
        for asset in assets:
            name = asset.category or 'Uncategorized'
            totals[name] = totals.get(name, 0.0) + self._record(asset).net_book_value
        breakdown = [{'name': name, 'value': round(value, 2)} for name, value in totals.items()]
        return sorted(breakdown, key=lambda item: item['value'], reverse=True)

    def process_dashboard(self, assets: List[Asset]) -> Dict:
        """Summary, value trend and category breakdown in one payload"""
        logger.info(f"🔄 Processing dashboard for {len(assets)} assets as of {self.as_of}")
        started = datetime.now()
        result = {
            'summary': self.summary(assets),
            'value_trend': self.value_trend(assets),
            'category_breakdown': self.category_breakdown(assets),
        }
        elapsed = (datetime.now() - started).total_seconds()
        logger.debug(f"✅ Dashboard processed in {elapsed:.3f}s")
        return result
