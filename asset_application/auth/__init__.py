"""
Authentication Module
Handles user registration, login and session management
"""

from flask import Blueprint, request, jsonify, session, current_app
import logging
import sqlite3
from .. import database
from .auth import require_login, validate_password

logger = logging.getLogger(__name__)

# Create authentication blueprint
auth_bp = Blueprint('auth', __name__, url_prefix='/api')


@auth_bp.route('/register', methods=['POST'])
def register():
    """User registration endpoint"""
    logger.info("📝 POST /api/register - User registration request")
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    confirm_password = data.get('confirm_password')

    if not email or not password:
        logger.warning("❌ Registration failed: Missing email/password")
        return jsonify({'error': 'Email and password required'}), 400

    failed_rules = validate_password(password)
    if failed_rules:
        logger.warning(f"❌ Registration failed: weak password for {email}")
        return jsonify({
            'error': 'Password does not meet all requirements',
            'failed_rules': failed_rules
        }), 400

    if confirm_password is not None and confirm_password != password:
        return jsonify({'error': 'Passwords do not match'}), 400

    try:
        user_id = database.create_user(
            email,
            password,
            full_name=(data.get('full_name') or '').strip() or None,
            company_name=(data.get('company_name') or '').strip() or None,
            default_categories=current_app.config.get('DEFAULT_CATEGORIES', []),
        )
        logger.info(f"✅ User created successfully: user_id={user_id}")
        return jsonify({
            'success': True,
            'user_id': user_id,
            'message': 'User created successfully'
        }), 201
    except sqlite3.IntegrityError:
        logger.warning(f"❌ Registration failed: email already registered ({email})")
        return jsonify({'error': 'An account with this email already exists'}), 409
    except Exception as e:
        logger.error(f"❌ Registration error: {str(e)}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@auth_bp.route('/login', methods=['POST'])
def login():
    """User login endpoint"""
    logger.info("🔐 POST /api/login - Login request")
    data = request.get_json(silent=True) or {}
    email = data.get('email')
    password = data.get('password')

    user = database.authenticate_user(email, password)

    if user:
        session['user_id'] = user['user_id']
        session['email'] = user['email']
        logger.info(f"✅ Login successful: user_id={user['user_id']}")

        user_info = database.get_user(user['user_id'])
        return jsonify({
            'success': True,
            'user': user_info
        })
    else:
        logger.warning(f"❌ Login failed: Invalid credentials for email={email}")
        return jsonify({'error': 'Invalid credentials'}), 401


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """User logout endpoint"""
    user_id = session.get('user_id')
    logger.info(f"🚪 POST /api/logout - User {user_id} logging out")
    session.clear()
    return jsonify({'success': True, 'message': 'Logged out'})


@auth_bp.route('/user', methods=['GET'])
def get_current_user():
    """Get current logged-in user"""
    logger.debug("👤 GET /api/user - Checking user session")
    if 'user_id' in session:
        user = database.get_user(session['user_id'])
        if user:
            logger.debug(f"User {user['email']} session valid")
            return jsonify({'success': True, 'user': user})

    logger.debug("No valid session")
    return jsonify({'error': 'Not logged in'}), 401


__all__ = ['auth_bp', 'require_login', 'validate_password']
