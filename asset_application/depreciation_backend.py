"""
Depreciation Backend API
Form previews, per-asset depreciation, the depreciation schedule and dashboard figures
"""

from flask import Blueprint, request, jsonify, session, current_app
from datetime import date
from typing import List, Optional
import logging

from asset_application.asset_accounting.core.calculator import (
    compute_depreciation,
    depreciate_asset,
    reverse_useful_life,
)
from asset_application.asset_accounting.core.models import (
    Asset,
    DepreciationMethod,
    MonthCounting,
    ScheduleFilters,
)
from asset_application.asset_accounting.core.results_processor import ResultsProcessor
from asset_application.asset_accounting.core.validation import clamp_useful_life, parse_amount
from asset_application.asset_accounting.schedule.generator import (
    available_categories,
    available_months,
    generate_schedule,
)
from asset_application.asset_accounting.utils.date_utils import parse_date
from asset_application.auth import require_login
from asset_application import database

# Create blueprint
depreciation_bp = Blueprint('depreciation', __name__, url_prefix='/api')

logger = logging.getLogger(__name__)


class InvalidDateError(ValueError):
    pass


def _parse_as_of(value: Optional[str]) -> Optional[date]:
    """Optional as_of_date query/body value; malformed dates are rejected rather than ignored"""
    if value in (None, ''):
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise InvalidDateError(f"Invalid as_of_date '{value}', expected YYYY-MM-DD")
    return parsed


def build_filters(as_of_date: Optional[date] = None, category: Optional[str] = None,
                  month: Optional[str] = None) -> ScheduleFilters:
    """ScheduleFilters carrying the app's month-counting convention and default useful life"""
    return ScheduleFilters(
        category=category,
        month=month,
        as_of_date=as_of_date or date.today(),
        counting=MonthCounting(current_app.config.get('MONTH_COUNTING', 'inclusive')),
        default_useful_life=current_app.config.get('DEFAULT_USEFUL_LIFE', 5),
    )


def load_assets(user_id: int) -> List[Asset]:
    """Snapshot of the user's assets for one request"""
    return [Asset.from_dict(row) for row in database.list_assets(user_id)]


@depreciation_bp.route('/depreciation/preview', methods=['POST'])
@require_login
def preview_depreciation():
    """
    Live depreciation preview for the add/edit asset forms
    Nothing is persisted
    """
    data = request.get_json(silent=True) or {}
    logger.info(f"📥 POST /api/depreciation/preview - price={data.get('purchase_price')}, "
                f"purchase_date={data.get('purchase_date')}, useful_life={data.get('useful_life')}")
    try:
        purchase_date = parse_date(data.get('purchase_date'))
        if purchase_date is None:
            return jsonify({'error': 'Purchase date is required'}), 400

        try:
            purchase_price = parse_amount(data.get('purchase_price'))
            disposal_value = parse_amount(data.get('current_value'))
            useful_life = clamp_useful_life(data.get('useful_life'), current_app.config.get('MAX_USEFUL_LIFE', 50))
        except (ValueError, TypeError):
            return jsonify({'error': 'Purchase price, current value and useful life must be numbers'}), 400

        method = str(data.get('method') or DepreciationMethod.STRAIGHT_LINE.value).strip().lower()
        if method not in DepreciationMethod.values():
            return jsonify({'error': f"Method must be one of: {', '.join(DepreciationMethod.values())}"}), 400

        filters = build_filters(_parse_as_of(data.get('as_of_date')))
        if useful_life is None:
            useful_life = filters.default_useful_life

        is_disposed = str(data.get('status') or '').lower() == 'disposed'
        record = compute_depreciation(
            purchase_price=purchase_price,
            purchase_date=purchase_date,
            useful_life_years=useful_life,
            as_of_date=filters.as_of_date,
            is_disposed=is_disposed,
            disposal_value=disposal_value,
            counting=filters.counting,
            method=DepreciationMethod(method),
        )
        return jsonify({
            'success': True,
            'useful_life': useful_life,
            'method': method,
            'as_of_date': filters.as_of_date.isoformat(),
            'depreciation': record.to_dict(),
        })
    except InvalidDateError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"❌ Depreciation preview error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@depreciation_bp.route('/assets/<int:asset_id>/depreciation', methods=['GET'])
@require_login
def get_asset_depreciation(asset_id):
    """
    Depreciation for one stored asset, as loaded by the edit form.
    When no useful life was recorded, an estimate is reconstructed from
    the stored current value.
    """
    user_id = session['user_id']
    logger.info(f"📋 GET /api/assets/{asset_id}/depreciation - User {user_id}")
    try:
        row = database.get_asset(asset_id, user_id)
        if not row:
            return jsonify({'error': 'Asset not found'}), 404

        filters = build_filters(_parse_as_of(request.args.get('as_of_date')))
        asset = Asset.from_dict(row)

        useful_life_estimated = asset.useful_life is None and asset.purchase_date is not None
        if useful_life_estimated:
            useful_life = reverse_useful_life(
                asset.purchase_price, asset.current_value, asset.purchase_date, filters.as_of_date
            )
            record = compute_depreciation(
                purchase_price=asset.purchase_price,
                purchase_date=asset.purchase_date,
                useful_life_years=useful_life,
                as_of_date=filters.as_of_date,
                is_disposed=asset.is_disposed,
                disposal_value=asset.current_value or 0.0,
                counting=filters.counting,
            )
        else:
            useful_life = asset.useful_life
            record = depreciate_asset(asset, filters.as_of_date, filters.counting, filters.default_useful_life)

        return jsonify({
            'success': True,
            'asset': asset.to_dict(),
            'useful_life': useful_life,
            'useful_life_estimated': useful_life_estimated,
            'as_of_date': filters.as_of_date.isoformat(),
            'depreciation': record.to_dict(),
        })
    except InvalidDateError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"❌ Error computing depreciation for asset {asset_id}: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@depreciation_bp.route('/depreciation/schedule', methods=['GET'])
@require_login
def get_depreciation_schedule():
    """Depreciation schedule with totals, filterable by category and purchase month"""
    user_id = session['user_id']
    category = request.args.get('category')
    month = request.args.get('month')
    logger.info(f"📋 GET /api/depreciation/schedule - User {user_id}, category={category}, month={month}")
    try:
        filters = build_filters(_parse_as_of(request.args.get('as_of_date')), category=category, month=month)
        assets = load_assets(user_id)
        schedule = generate_schedule(assets, filters)

        return jsonify({
            'success': True,
            'schedule': schedule.to_dict(),
            'available_months': available_months(assets),
            'available_categories': available_categories(assets),
            'filters': {
                'category': category or 'All Categories',
                'month': month or 'All Months',
            },
        })
    except InvalidDateError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"❌ Error generating schedule: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@depreciation_bp.route('/dashboard', methods=['GET'])
@require_login
def get_dashboard():
    """Dashboard summary, value trend, category breakdown and upcoming maintenance"""
    user_id = session['user_id']
    logger.info(f"📊 GET /api/dashboard - User {user_id}")
    try:
        filters = build_filters(_parse_as_of(request.args.get('as_of_date')))
        assets = load_assets(user_id)
        result = ResultsProcessor(filters).process_dashboard(assets)
        result['recent_assets'] = [asset.to_dict() for asset in assets[:5]]
        result['upcoming_maintenance'] = database.get_upcoming_maintenance(user_id, limit=5, as_of=filters.as_of_date)
        result['success'] = True
        return jsonify(result)
    except InvalidDateError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"❌ Error building dashboard: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@depreciation_bp.route('/dashboard/value_trend', methods=['GET'])
@require_login
def get_value_trend():
    """Total book value for each of the trailing 12 months"""
    user_id = session['user_id']
    logger.info(f"📈 GET /api/dashboard/value_trend - User {user_id}")
    try:
        filters = build_filters(_parse_as_of(request.args.get('as_of_date')))
        months = max(1, min(36, request.args.get('months', 12, type=int)))
        trend = ResultsProcessor(filters).value_trend(load_assets(user_id), months=months)
        return jsonify({'success': True, 'value_trend': trend})
    except InvalidDateError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"❌ Error building value trend: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500
