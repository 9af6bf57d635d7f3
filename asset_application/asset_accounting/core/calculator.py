"""
Depreciation Calculator
Monthly depreciation for a single asset: straight-line, plus the double
declining balance and sum-of-years-digits methods offered by the preview

Every surface that shows a depreciated value (add/edit previews, the
dashboard trend, the depreciation schedule) goes through compute_depreciation
so the figures agree everywhere.
"""

from datetime import date
from typing import Optional
import logging
import math

from asset_application.asset_accounting.core.models import (
    Asset,
    DepreciationMethod,
    DepreciationRecord,
    MonthCounting,
)
from asset_application.asset_accounting.utils.date_utils import months_between

logger = logging.getLogger(__name__)

# Fallback when no useful life can be determined
DEFAULT_USEFUL_LIFE = 5


def declining_balance_accumulated(price: float, useful_life: float, months: int) -> float:
    """
    Double declining balance (200%) depreciation accumulated after `months`.

    Each whole year takes 2 / useful_life of the book value at its start;
    a part year takes the same share of the next year's charge.
    """
    rate = min(1.0, 2 / useful_life)
    whole_years, part = divmod(max(0, months), 12)
    book_value = price
    accumulated = 0.0
    for _ in range(whole_years):
        charge = book_value * rate
        accumulated += charge
        book_value -= charge
    accumulated += book_value * rate * part / 12
    return min(price, accumulated)


def sum_of_years_accumulated(price: float, useful_life: float, months: int) -> float:
    """
    Sum-of-years-digits depreciation accumulated after `months`.

    Year n is charged (useful_life - n + 1) / (1 + 2 + ... + useful_life) of
    the price; years past the useful life are charged nothing.
    """
    digits_total = useful_life * (useful_life + 1) / 2
    whole_years, part = divmod(max(0, months), 12)
    accumulated = 0.0
    for year in range(1, whole_years + 1):
        accumulated += max(0.0, useful_life - year + 1) / digits_total * price
    accumulated += max(0.0, useful_life - whole_years) / digits_total * price * part / 12
    return min(price, accumulated)


def _method_figures(method: DepreciationMethod, price: float, useful_life: float, months_elapsed: int):
    """(accumulated, opening, yearly charge, rate %) for the accelerated methods"""
    if method == DepreciationMethod.DECLINING_BALANCE:
        accumulate = declining_balance_accumulated
    else:
        accumulate = sum_of_years_accumulated

    accumulated = accumulate(price, useful_life, months_elapsed)
    opening = accumulate(price, useful_life, months_elapsed - 1)

    # Charge for the year the as-of month falls in
    year_start = (max(1, months_elapsed) - 1) // 12 * 12
    yearly = accumulate(price, useful_life, year_start + 12) - accumulate(price, useful_life, year_start)

    if method == DepreciationMethod.DECLINING_BALANCE:
        rate = _initial_rate(method, useful_life)
    else:
        rate = yearly / price * 100
    return accumulated, opening, yearly, rate


def _initial_rate(method: DepreciationMethod, useful_life: float) -> float:
    """Depreciation rate in percent for the first year of life"""
    if useful_life <= 0:
        return 0.0
    if method == DepreciationMethod.DECLINING_BALANCE:
        return min(100.0, 200 / useful_life)
    if method == DepreciationMethod.SUM_OF_YEARS:
        return 200 / (useful_life + 1)
    return 100 / useful_life


def compute_depreciation(
    purchase_price: float,
    purchase_date: date,
    useful_life_years: float,
    as_of_date: Optional[date] = None,
    is_disposed: bool = False,
    disposal_value: float = 0.0,
    counting: MonthCounting = MonthCounting.INCLUSIVE,
    method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE,
) -> DepreciationRecord:
    """
    Compute depreciation for one asset as of a date.

    Never raises for numeric input: zero or non-finite price, a future
    purchase date, zero useful life and disposed status all map to
    well-defined zero or clamped results.

    Args:
        purchase_price: Cost of the asset
        purchase_date: Date the asset was acquired
        useful_life_years: Depreciable life; 0 means the asset does not depreciate
        as_of_date: Reference date, defaults to today
        is_disposed: Disposed assets carry no remaining cost or book value
        disposal_value: Value removed on disposal (the last known current value)
        counting: Whether the purchase month itself counts as elapsed
        method: Straight-line (default), declining balance or sum of years digits
    Returns:
        DepreciationRecord
    """
    as_of_date = as_of_date or date.today()
    method = DepreciationMethod(method)
    price = float(purchase_price or 0)
    useful_life = float(useful_life_years or 0)

    if not math.isfinite(price) or price <= 0:
        return DepreciationRecord()
    if not math.isfinite(useful_life):
        useful_life = 0.0

    rate = _initial_rate(method, useful_life)

    if is_disposed:
        return DepreciationRecord(
            cost_final_balance=price,
            disposal=float(disposal_value or 0),
            depreciation_rate=rate,
            is_disposed=True,
        )

    if purchase_date > as_of_date:
        return DepreciationRecord(
            cost_final_balance=price,
            remaining_cost=price,
            depreciation_rate=rate,
            remaining_value=price,
            net_book_value=price,
            is_future_date=True,
        )

    if useful_life <= 0:
        return DepreciationRecord(
            cost_final_balance=price,
            remaining_cost=price,
            remaining_value=price,
            net_book_value=price,
        )

    months_elapsed = months_between(purchase_date, as_of_date,
                                    inclusive=MonthCounting(counting) == MonthCounting.INCLUSIVE)
    remaining_cost = price

    if method == DepreciationMethod.STRAIGHT_LINE:
        yearly = price / useful_life
        monthly = yearly / 12
        accumulated = min(price, monthly * months_elapsed)
        opening = min(price, monthly * max(0, months_elapsed - 1))
        closing = min(price, opening + monthly)
    else:
        accumulated, opening, yearly, rate = _method_figures(method, price, useful_life, months_elapsed)
        closing = accumulated
        monthly = closing - opening

    remaining_value = max(0.0, price - accumulated)

    return DepreciationRecord(
        cost_final_balance=price,
        disposal=0.0,
        remaining_cost=remaining_cost,
        depreciation_rate=rate,
        opening_depreciation=opening,
        monthly_depreciation=monthly,
        disposal_depreciation=0.0,
        closing_depreciation=closing,
        net_book_value=max(0.0, remaining_cost - closing),
        yearly_depreciation=yearly,
        accumulated_depreciation=accumulated,
        remaining_value=remaining_value,
        months_elapsed=months_elapsed,
    )


def reverse_useful_life(
    purchase_price: float,
    current_value: Optional[float],
    purchase_date: date,
    as_of_date: Optional[date] = None,
) -> float:
    """
    Estimate the useful life implied by an asset's stored current value.

    Used when an asset was saved without a useful life. Assumes the stored
    value came from straight-line depreciation with inclusive month counting;
    the result is an estimate, rounded to two decimals and never below 1.
    """
    as_of_date = as_of_date or date.today()
    price = float(purchase_price or 0)

    if price <= 0 or current_value is None:
        return DEFAULT_USEFUL_LIFE
    current_value = float(current_value)
    if current_value < 0 or current_value > price or current_value == price:
        return DEFAULT_USEFUL_LIFE

    months = max(1, months_between(purchase_date, as_of_date, inclusive=True))
    useful_life = (price * months) / ((price - current_value) * 12)
    return max(1.0, round(useful_life, 2))


def resolve_useful_life(asset: Asset, default: int = DEFAULT_USEFUL_LIFE) -> float:
    """Stored useful life, falling back to the configured default when none was recorded"""
    if asset.useful_life is None:
        return default
    return asset.useful_life


def depreciate_asset(
    asset: Asset,
    as_of_date: Optional[date] = None,
    counting: MonthCounting = MonthCounting.INCLUSIVE,
    default_useful_life: int = DEFAULT_USEFUL_LIFE,
) -> DepreciationRecord:
    """Run compute_depreciation for a stored asset"""
    if asset.purchase_date is None and not asset.is_disposed:
        logger.warning(f"⚠️ Asset {asset.asset_code or asset.asset_id} has no purchase date, skipping depreciation")
        return DepreciationRecord(
            cost_final_balance=max(0.0, asset.purchase_price),
            remaining_cost=max(0.0, asset.purchase_price),
            remaining_value=max(0.0, asset.purchase_price),
            net_book_value=max(0.0, asset.purchase_price),
        )

    return compute_depreciation(
        purchase_price=asset.purchase_price,
        purchase_date=asset.purchase_date,
        useful_life_years=resolve_useful_life(asset, default_useful_life),
        as_of_date=as_of_date,
        is_disposed=asset.is_disposed,
        disposal_value=asset.current_value or 0.0,
        counting=counting,
    )
