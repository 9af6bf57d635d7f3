"""
Authentication Utilities
Helper functions for authentication
"""

from functools import wraps
from flask import session, jsonify
from typing import List
import logging
import re

logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")

PASSWORD_RULES = [
    ('At least 8 characters', lambda pwd: len(pwd) >= 8),
    ('One uppercase letter', lambda pwd: re.search(r'[A-Z]', pwd) is not None),
    ('One lowercase letter', lambda pwd: re.search(r'[a-z]', pwd) is not None),
    ('One number', lambda pwd: re.search(r'\d', pwd) is not None),
    ('One special character', lambda pwd: SPECIAL_CHARACTERS.search(pwd) is not None),
]


def validate_password(password: str) -> List[str]:
    """Return the password rules that are not met; empty when the password is acceptable"""
    password = password or ''
    return [label for label, rule in PASSWORD_RULES if not rule(password)]


def require_login(f):
    """
    Decorator to require authentication
    Use this decorator on routes that need authentication
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            logger.warning("❌ Unauthorized access attempt")
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function
