"""
Data models for the asset accounting system
Assets as stored, and the depreciation figures derived from them
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import date

from asset_application.asset_accounting.utils.date_utils import parse_date


class AssetStatus(str, Enum):
    ACTIVE = 'active'
    MAINTENANCE = 'maintenance'
    INACTIVE = 'inactive'
    DISPOSED = 'disposed'

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class MonthCounting(str, Enum):
    """How elapsed months are counted between purchase date and as-of date"""
    INCLUSIVE = 'inclusive'  # purchase month is depreciated
    EXCLUSIVE = 'exclusive'


class DepreciationMethod(str, Enum):
    """Depreciation method; straight-line is what stored assets use"""
    STRAIGHT_LINE = 'straight-line'
    DECLINING_BALANCE = 'declining-balance'  # double declining, 200%
    SUM_OF_YEARS = 'sum-of-years'

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


@dataclass
class Asset:
    """A tracked physical asset, as persisted in the assets table"""

    # Identifiers
    asset_code: str
    name: str
    asset_id: Optional[int] = None
    user_id: Optional[int] = None

    # Classification
    category: str = ""
    location: str = ""
    status: str = AssetStatus.ACTIVE.value
    assigned_to: str = ""

    # Financials
    purchase_date: Optional[date] = None
    purchase_price: float = 0.0
    current_value: Optional[float] = None
    useful_life: Optional[int] = None  # years; None means "not recorded"

    # Free-form details
    assigned_invoice: Optional[str] = None
    description: Optional[str] = None
    serial_number: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_disposed(self) -> bool:
        return self.status == AssetStatus.DISPOSED.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Asset':
        """Build an Asset from a database row or JSON payload"""
        return cls(
            asset_id=_to_int(data.get('asset_id')),
            user_id=_to_int(data.get('user_id')),
            asset_code=str(data.get('asset_code') or '').strip(),
            name=str(data.get('name') or '').strip(),
            category=str(data.get('category') or '').strip(),
            location=str(data.get('location') or '').strip(),
            status=str(data.get('status') or AssetStatus.ACTIVE.value).strip().lower(),
            assigned_to=str(data.get('assigned_to') or '').strip(),
            purchase_date=parse_date(data.get('purchase_date')),
            purchase_price=_to_float(data.get('purchase_price')) or 0.0,
            current_value=_to_float(data.get('current_value')),
            useful_life=_to_int(data.get('useful_life')),
            assigned_invoice=data.get('assigned_invoice') or None,
            description=data.get('description') or None,
            serial_number=data.get('serial_number') or None,
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses"""
        return {
            'asset_id': self.asset_id,
            'user_id': self.user_id,
            'asset_code': self.asset_code,
            'name': self.name,
            'category': self.category,
            'location': self.location,
            'status': self.status,
            'assigned_to': self.assigned_to,
            'purchase_date': self.purchase_date.isoformat() if self.purchase_date else None,
            'purchase_price': self.purchase_price,
            'current_value': self.current_value,
            'useful_life': self.useful_life,
            'assigned_invoice': self.assigned_invoice,
            'description': self.description,
            'serial_number': self.serial_number,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


@dataclass(frozen=True)
class DepreciationRecord:
    """
    Depreciation figures for one asset as of one date.

    Derived on demand and never persisted. Column names follow the
    fixed-asset register layout: cost, disposal, opening/addition/closing
    depreciation and net book value.
    """
    cost_final_balance: float = 0.0
    disposal: float = 0.0
    remaining_cost: float = 0.0
    depreciation_rate: float = 0.0
    opening_depreciation: float = 0.0
    monthly_depreciation: float = 0.0
    disposal_depreciation: float = 0.0
    closing_depreciation: float = 0.0
    net_book_value: float = 0.0

    yearly_depreciation: float = 0.0
    accumulated_depreciation: float = 0.0
    remaining_value: float = 0.0
    months_elapsed: int = 0
    is_future_date: bool = False
    is_disposed: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            'cost_final_balance': self.cost_final_balance,
            'disposal': self.disposal,
            'remaining_cost': self.remaining_cost,
            'depreciation_rate': self.depreciation_rate,
            'opening_depreciation': self.opening_depreciation,
            'monthly_depreciation': self.monthly_depreciation,
            'disposal_depreciation': self.disposal_depreciation,
            'closing_depreciation': self.closing_depreciation,
            'net_book_value': self.net_book_value,
            'yearly_depreciation': self.yearly_depreciation,
            'accumulated_depreciation': self.accumulated_depreciation,
            'remaining_value': self.remaining_value,
            'months_elapsed': self.months_elapsed,
            'is_future_date': self.is_future_date,
            'is_disposed': self.is_disposed,
        }


@dataclass
class ScheduleRow:
    """Single line of the depreciation schedule"""
    no: int
    asset_id: Optional[int]
    asset_code: str
    asset_name: str
    category: str
    purchase_date: Optional[date]
    record: DepreciationRecord

    def to_dict(self) -> dict:
        row = {
            'no': self.no,
            'asset_id': self.asset_id,
            'asset_code': self.asset_code,
            'asset_name': self.asset_name,
            'category': self.category,
            'purchase_date': self.purchase_date.isoformat() if self.purchase_date else None,
        }
        row.update(self.record.to_dict())
        return row


@dataclass
class ScheduleFilters:
    """Filters for the depreciation schedule report"""
    category: Optional[str] = None  # None or 'All Categories' means every category
    month: Optional[str] = None  # YYYY-MM of purchase; None or 'All Months' means every month
    as_of_date: Optional[date] = None
    counting: MonthCounting = MonthCounting.INCLUSIVE
    default_useful_life: int = 5


@dataclass
class DepreciationSchedule:
    """Depreciation schedule with its totals row"""
    rows: List[ScheduleRow] = field(default_factory=list)
    totals: Dict[str, float] = field(default_factory=dict)
    as_of_date: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            'rows': [row.to_dict() for row in self.rows],
            'totals': self.totals,
            'as_of_date': self.as_of_date.isoformat() if self.as_of_date else None,
            'row_count': len(self.rows),
        }
