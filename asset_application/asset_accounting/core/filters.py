"""
Asset list filtering
Search and dropdown filters applied to a user's asset list
"""

from typing import Iterable, List, Optional

from asset_application.asset_accounting.core.models import Asset
from asset_application.asset_accounting.utils.date_utils import month_key

ALL_CATEGORIES = 'All Categories'
ALL_STATUSES = 'All Status'
ALL_MONTHS = 'All Months'


def _is_unset(value: Optional[str], sentinel: str) -> bool:
    return not value or value.lower() in (sentinel.lower(), 'all')


def filter_assets(
    assets: Iterable[Asset],
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    month: Optional[str] = None,
) -> List[Asset]:
    """
    Filter assets the way the asset list screen does.

    search matches name or asset code, case-insensitively. category, status
    and month (YYYY-MM of purchase) must match exactly; None or an
    'All ...' value disables that filter.
    """
    query = (search or '').strip().lower()
    filtered = []
    for asset in assets:
        if query and query not in asset.name.lower() and query not in asset.asset_code.lower():
            continue
        if not _is_unset(category, ALL_CATEGORIES) and (asset.category or '') != category:
            continue
        if not _is_unset(status, ALL_STATUSES) and asset.status != status.lower():
            continue
        if not _is_unset(month, ALL_MONTHS):
            if asset.purchase_date is None or month_key(asset.purchase_date) != month:
                continue
        filtered.append(asset)
    return filtered
