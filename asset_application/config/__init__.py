"""
Configuration Management
Environment-driven configuration for the asset tracker
"""

import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'asset-tracker-secret-key-change-in-production')
    DATABASE_PATH = Path(os.environ.get('DATABASE_PATH', BASE_DIR / 'asset_tracker.db'))
    LOG_DIR = Path(os.environ.get('LOG_DIR', BASE_DIR / 'logs'))
    TESTING = False

    # Flask settings
    FLASK_ENV = os.environ.get('FLASK_ENV', 'development')
    DEBUG = FLASK_ENV == 'development'

    # API settings
    API_HOST = os.environ.get('API_HOST', 'localhost')
    API_PORT = int(os.environ.get('API_PORT', 5001))

    # CORS settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Logging
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5

    # Depreciation
    # 'inclusive' counts the purchase month as a depreciated month
    MONTH_COUNTING = os.environ.get('MONTH_COUNTING', 'inclusive')
    DEFAULT_USEFUL_LIFE = int(os.environ.get('DEFAULT_USEFUL_LIFE', 5))
    MAX_USEFUL_LIFE = 50

    # Seeded for every new account
    DEFAULT_CATEGORIES = [
        'IT Equipment',
        'Furniture',
        'Vehicles',
        'Office Equipment',
        'Machinery',
    ]


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = False
    SECRET_KEY = 'asset-tracker-testing-key'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


# Get configuration based on environment
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
