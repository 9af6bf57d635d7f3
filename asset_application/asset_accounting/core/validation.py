"""
Asset payload validation
Checks an incoming asset form and prepares the row that gets stored
"""

from datetime import date
from typing import Dict, Optional
import logging
import math

from asset_application.asset_accounting.core.calculator import compute_depreciation, resolve_useful_life
from asset_application.asset_accounting.core.models import Asset, AssetStatus, MonthCounting

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = {
    'asset_code': 'Asset ID is required',
    'name': 'Asset name is required',
    'category': 'Category is required',
    'location': 'Location is required',
    'assigned_to': 'Assigned to is required',
}


class AssetValidationError(ValueError):
    """Raised when an asset payload fails validation; errors maps field -> message"""

    def __init__(self, errors: Dict[str, str]):
        super().__init__('Please fix the errors before submitting')
        self.errors = errors


def clamp_useful_life(value, max_useful_life: int = 50) -> Optional[int]:
    """Parse a useful life in years and clamp it to [0, max_useful_life]; blank means not recorded"""
    if value is None or value == '':
        return None
    years = float(value)
    if not math.isfinite(years):
        raise ValueError(f"Useful life must be a finite number, got {value!r}")
    return max(0, min(max_useful_life, int(years)))


def parse_amount(value, default: float = 0.0) -> float:
    """Parse a money amount; blank gives default, NaN and infinities raise ValueError"""
    if value is None or value == '':
        return default
    amount = float(value)
    if not math.isfinite(amount):
        raise ValueError(f"Amount must be a finite number, got {value!r}")
    return amount


def prepare_asset(
    data: Dict,
    existing: Optional[Dict] = None,
    as_of_date: Optional[date] = None,
    counting: MonthCounting = MonthCounting.INCLUSIVE,
    default_useful_life: int = 5,
    max_useful_life: int = 50,
) -> Dict:
    """
    Validate an asset payload and return the column values to persist.

    For updates, fields missing from data keep their existing values.
    current_value is always recomputed: live remaining value for assets in
    service, and the disposal value (supplied, else previously stored) for
    disposed assets.

    Raises:
        AssetValidationError: when required fields are missing or malformed
    """
    merged = dict(existing or {})
    merged.update({k: v for k, v in (data or {}).items() if k not in ('asset_id', 'user_id')})

    errors: Dict[str, str] = {}
    for field_name, message in REQUIRED_TEXT_FIELDS.items():
        if not str(merged.get(field_name) or '').strip():
            errors[field_name] = message

    try:
        merged['useful_life'] = clamp_useful_life(merged.get('useful_life'), max_useful_life)
    except (ValueError, TypeError):
        errors['useful_life'] = 'Useful life must be a number of years'
        merged['useful_life'] = None

    status = str(merged.get('status') or AssetStatus.ACTIVE.value).strip().lower()
    if status not in AssetStatus.values():
        errors['status'] = f"Status must be one of: {', '.join(AssetStatus.values())}"
    merged['status'] = status

    asset = Asset.from_dict(merged)
    if asset.purchase_date is None:
        errors['purchase_date'] = 'Purchase date is required'
    if asset.purchase_price <= 0:
        errors['purchase_price'] = 'Purchase price must be greater than 0'

    if errors:
        logger.warning(f"❌ Asset validation failed: {sorted(errors)}")
        raise AssetValidationError(errors)

    if asset.is_disposed:
        supplied = (data or {}).get('current_value')
        disposal_value = asset.current_value if supplied not in (None, '') or existing else None
        if disposal_value is None:
            disposal_value = _live_value(asset, as_of_date, counting, default_useful_life)
        asset.current_value = round(max(0.0, min(asset.purchase_price, disposal_value)), 2)
    else:
        asset.current_value = round(_live_value(asset, as_of_date, counting, default_useful_life), 2)

    row = asset.to_dict()
    for key in ('asset_id', 'user_id', 'created_at', 'updated_at'):
        row.pop(key, None)
    return row


def _live_value(asset: Asset, as_of_date: Optional[date], counting: MonthCounting, default_useful_life: int) -> float:
    record = compute_depreciation(
        purchase_price=asset.purchase_price,
        purchase_date=asset.purchase_date,
        useful_life_years=resolve_useful_life(asset, default_useful_life),
        as_of_date=as_of_date,
        counting=counting,
    )
    return record.remaining_value
