"""
API Routes for Asset Management
Assets, categories and maintenance tasks for the logged-in user
"""

from flask import Blueprint, request, jsonify, session, current_app
from datetime import date
import logging
import sqlite3
from . import database
from .asset_accounting.core.filters import filter_assets
from .asset_accounting.core.models import MonthCounting
from .asset_accounting.core.results_processor import ResultsProcessor
from .asset_accounting.core.validation import AssetValidationError, prepare_asset
from .asset_accounting.utils.date_utils import parse_date
from .depreciation_backend import build_filters, load_assets

logger = logging.getLogger(__name__)

# Create API blueprint
api_bp = Blueprint('api', __name__, url_prefix='/api')

# Import require_login decorator
from .auth import require_login

PRIORITIES = ('low', 'medium', 'high')


def _prepare(data, existing=None):
    return prepare_asset(
        data,
        existing=existing,
        as_of_date=date.today(),
        counting=MonthCounting(current_app.config.get('MONTH_COUNTING', 'inclusive')),
        default_useful_life=current_app.config.get('DEFAULT_USEFUL_LIFE', 5),
        max_useful_life=current_app.config.get('MAX_USEFUL_LIFE', 50),
    )


# ============ ASSETS ============

@api_bp.route('/assets', methods=['GET'])
@require_login
def get_assets():
    """Get the current user's assets, optionally filtered"""
    user_id = session['user_id']
    logger.info(f"📋 GET /api/assets - User {user_id} fetching assets")

    try:
        assets = load_assets(user_id)
        filtered = filter_assets(
            assets,
            search=request.args.get('search'),
            category=request.args.get('category'),
            status=request.args.get('status'),
            month=request.args.get('month'),
        )
        logger.info(f"Found {len(filtered)} of {len(assets)} assets for user {user_id}")
        return jsonify({
            'success': True,
            'assets': [asset.to_dict() for asset in filtered],
            'total_count': len(assets),
        })
    except Exception as e:
        logger.error(f"Error fetching assets: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets', methods=['POST'])
@require_login
def create_asset():
    """Create a new asset"""
    user_id = session['user_id']
    logger.info(f"➕ POST /api/assets - User {user_id} creating asset")

    try:
        row = _prepare(request.get_json(silent=True) or {})
        asset_id = database.create_asset(user_id, row)
        logger.info(f"✅ Asset created: asset_id={asset_id}, code={row['asset_code']}")
        return jsonify({
            'success': True,
            'asset_id': asset_id,
            'asset': database.get_asset(asset_id, user_id),
            'message': 'Asset created successfully'
        }), 201
    except AssetValidationError as e:
        return jsonify({'success': False, 'error': str(e), 'errors': e.errors}), 400
    except sqlite3.IntegrityError:
        logger.warning(f"❌ Duplicate asset code for user {user_id}")
        return jsonify({'success': False, 'error': 'An asset with this Asset ID already exists'}), 409
    except Exception as e:
        logger.error(f"Error creating asset: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets/<int:asset_id>', methods=['GET'])
@require_login
def get_asset(asset_id):
    """Get a specific asset"""
    user_id = session['user_id']
    logger.info(f"📋 GET /api/assets/{asset_id} - User {user_id}")

    try:
        asset = database.get_asset(asset_id, user_id)
        if not asset:
            return jsonify({'success': False, 'error': 'Asset not found'}), 404
        return jsonify({'success': True, 'asset': asset})
    except Exception as e:
        logger.error(f"Error fetching asset {asset_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets/<int:asset_id>', methods=['PUT'])
@require_login
def update_asset(asset_id):
    """Update an existing asset"""
    user_id = session['user_id']
    logger.info(f"✏️ PUT /api/assets/{asset_id} - User {user_id} updating asset")

    try:
        existing = database.get_asset(asset_id, user_id)
        if not existing:
            return jsonify({'success': False, 'error': 'Asset not found'}), 404

        row = _prepare(request.get_json(silent=True) or {}, existing=existing)
        database.update_asset(asset_id, user_id, row)
        logger.info(f"✅ Asset {asset_id} updated")
        return jsonify({
            'success': True,
            'asset': database.get_asset(asset_id, user_id),
            'message': 'Asset updated successfully'
        })
    except AssetValidationError as e:
        return jsonify({'success': False, 'error': str(e), 'errors': e.errors}), 400
    except sqlite3.IntegrityError:
        return jsonify({'success': False, 'error': 'An asset with this Asset ID already exists'}), 409
    except Exception as e:
        logger.error(f"Error updating asset {asset_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets/<int:asset_id>', methods=['DELETE'])
@require_login
def delete_asset(asset_id):
    """Delete an asset"""
    user_id = session['user_id']
    logger.info(f"🗑️ DELETE /api/assets/{asset_id} - User {user_id}")

    try:
        if database.delete_asset(asset_id, user_id):
            logger.info(f"✅ Asset {asset_id} deleted")
            return jsonify({'success': True, 'message': 'Asset deleted'})
        return jsonify({'success': False, 'error': 'Asset not found'}), 404
    except Exception as e:
        logger.error(f"Error deleting asset {asset_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets/<int:asset_id>/audit', methods=['GET'])
@require_login
def get_asset_audit(asset_id):
    """Field-level change history of an asset"""
    user_id = session['user_id']
    try:
        return jsonify({'success': True, 'audit': database.get_asset_audit_log(asset_id, user_id)})
    except Exception as e:
        logger.error(f"Error fetching audit log for asset {asset_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets/stats', methods=['GET'])
@require_login
def get_asset_stats():
    """Headline asset counts and values"""
    user_id = session['user_id']
    logger.info(f"📊 GET /api/assets/stats - User {user_id}")
    try:
        stats = ResultsProcessor(build_filters()).summary(load_assets(user_id))
        return jsonify({'success': True, 'stats': stats})
    except Exception as e:
        logger.error(f"Error computing asset stats: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/assets/by_category', methods=['GET'])
@require_login
def get_assets_by_category():
    """Book value per category"""
    user_id = session['user_id']
    try:
        breakdown = ResultsProcessor(build_filters()).category_breakdown(load_assets(user_id))
        return jsonify({'success': True, 'categories': breakdown})
    except Exception as e:
        logger.error(f"Error computing category breakdown: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


# ============ CATEGORIES ============

@api_bp.route('/categories', methods=['GET'])
@require_login
def get_categories():
    user_id = session['user_id']
    try:
        return jsonify({'success': True, 'categories': database.list_categories(user_id)})
    except Exception as e:
        logger.error(f"Error fetching categories: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/categories', methods=['POST'])
@require_login
def create_category():
    user_id = session['user_id']
    name = ((request.get_json(silent=True) or {}).get('name') or '').strip()
    logger.info(f"➕ POST /api/categories - User {user_id} adding '{name}'")
    if not name:
        return jsonify({'success': False, 'error': 'Category name is required'}), 400
    try:
        category_id = database.create_category(user_id, name)
        return jsonify({'success': True, 'category_id': category_id, 'name': name}), 201
    except sqlite3.IntegrityError:
        return jsonify({'success': False, 'error': f"Category '{name}' already exists"}), 409
    except Exception as e:
        logger.error(f"Error creating category: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/categories/<int:category_id>', methods=['PUT'])
@require_login
def rename_category(category_id):
    user_id = session['user_id']
    name = ((request.get_json(silent=True) or {}).get('name') or '').strip()
    if not name:
        return jsonify({'success': False, 'error': 'Category name is required'}), 400
    try:
        if not database.rename_category(category_id, user_id, name):
            return jsonify({'success': False, 'error': 'Category not found'}), 404
        return jsonify({'success': True, 'category_id': category_id, 'name': name})
    except sqlite3.IntegrityError:
        return jsonify({'success': False, 'error': f"Category '{name}' already exists"}), 409
    except Exception as e:
        logger.error(f"Error renaming category {category_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@require_login
def delete_category(category_id):
    user_id = session['user_id']
    try:
        if database.delete_category(category_id, user_id):
            return jsonify({'success': True, 'message': 'Category deleted'})
        return jsonify({'success': False, 'error': 'Category not found'}), 404
    except Exception as e:
        logger.error(f"Error deleting category {category_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


# ============ MAINTENANCE ============

def _validate_task(data, user_id, partial=False):
    """Returns (task_data, error_message)"""
    task_data = {}
    if 'task' in data or not partial:
        task = (data.get('task') or '').strip()
        if not task:
            return None, 'Task description is required'
        task_data['task'] = task
    if 'due_date' in data or not partial:
        due_date = parse_date(data.get('due_date'))
        if due_date is None:
            return None, 'Due date is required (YYYY-MM-DD)'
        task_data['due_date'] = due_date
    if 'priority' in data or not partial:
        priority = (data.get('priority') or 'medium').lower()
        if priority not in PRIORITIES:
            return None, f"Priority must be one of: {', '.join(PRIORITIES)}"
        task_data['priority'] = priority
    if data.get('asset_id'):
        try:
            asset_id = int(data['asset_id'])
        except (ValueError, TypeError):
            return None, 'Asset ID must be a number'
        asset = database.get_asset(asset_id, user_id)
        if not asset:
            return None, 'Asset not found'
        task_data['asset_id'] = asset['asset_id']
        task_data['asset_name'] = asset['name']
    elif not partial:
        task_data['asset_name'] = data.get('asset_name')
    if partial and 'completed' in data:
        task_data['completed'] = bool(data['completed'])
    return task_data, None


@api_bp.route('/maintenance', methods=['GET'])
@require_login
def get_maintenance_tasks():
    user_id = session['user_id']
    logger.info(f"📋 GET /api/maintenance - User {user_id}")
    try:
        return jsonify({'success': True, 'tasks': database.list_maintenance_tasks(user_id)})
    except Exception as e:
        logger.error(f"Error fetching maintenance tasks: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/maintenance/upcoming', methods=['GET'])
@require_login
def get_upcoming_maintenance():
    user_id = session['user_id']
    limit = max(1, min(100, request.args.get('limit', 10, type=int)))
    try:
        tasks = database.get_upcoming_maintenance(user_id, limit=limit)
        return jsonify({'success': True, 'tasks': tasks})
    except Exception as e:
        logger.error(f"Error fetching upcoming maintenance: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/maintenance', methods=['POST'])
@require_login
def create_maintenance_task():
    user_id = session['user_id']
    logger.info(f"➕ POST /api/maintenance - User {user_id} scheduling task")
    try:
        task_data, error = _validate_task(request.get_json(silent=True) or {}, user_id)
        if error:
            return jsonify({'success': False, 'error': error}), 400
        task_id = database.create_maintenance_task(user_id, task_data)
        return jsonify({
            'success': True,
            'task_id': task_id,
            'task': database.get_maintenance_task(task_id, user_id)
        }), 201
    except Exception as e:
        logger.error(f"Error creating maintenance task: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/maintenance/<int:task_id>', methods=['PUT'])
@require_login
def update_maintenance_task(task_id):
    user_id = session['user_id']
    try:
        task_data, error = _validate_task(request.get_json(silent=True) or {}, user_id, partial=True)
        if error:
            return jsonify({'success': False, 'error': error}), 400
        if not database.update_maintenance_task(task_id, user_id, task_data):
            return jsonify({'success': False, 'error': 'Task not found'}), 404
        return jsonify({'success': True, 'task': database.get_maintenance_task(task_id, user_id)})
    except Exception as e:
        logger.error(f"Error updating maintenance task {task_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/maintenance/<int:task_id>/complete', methods=['POST'])
@require_login
def complete_maintenance_task(task_id):
    user_id = session['user_id']
    logger.info(f"✅ POST /api/maintenance/{task_id}/complete - User {user_id}")
    try:
        if not database.complete_maintenance_task(task_id, user_id):
            return jsonify({'success': False, 'error': 'Task not found'}), 404
        return jsonify({'success': True, 'task': database.get_maintenance_task(task_id, user_id)})
    except Exception as e:
        logger.error(f"Error completing maintenance task {task_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@api_bp.route('/maintenance/<int:task_id>', methods=['DELETE'])
@require_login
def delete_maintenance_task(task_id):
    user_id = session['user_id']
    try:
        if database.delete_maintenance_task(task_id, user_id):
            return jsonify({'success': True, 'message': 'Task deleted'})
        return jsonify({'success': False, 'error': 'Task not found'}), 404
    except Exception as e:
        logger.error(f"Error deleting maintenance task {task_id}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500
