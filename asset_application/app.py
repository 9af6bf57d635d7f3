"""
Asset Tracker Application
JSON API for assets, depreciation, categories and maintenance
"""

from flask import Flask, jsonify, session
from flask_cors import CORS
import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Import configuration
from asset_application.config import Config, config

# Import blueprints
from asset_application.auth import auth_bp
from asset_application.api import api_bp
from asset_application.depreciation_backend import depreciation_bp

# Import database
from asset_application import database


def setup_logging(log_dir: Path, max_bytes: int = Config.LOG_MAX_BYTES,
                  backup_count: int = Config.LOG_BACKUP_COUNT):
    """Setup application logging"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    log_file = log_dir / 'asset_app.log'

    # create_app may run more than once per process (tests); replace our previous handlers
    for handler in [h for h in root_logger.handlers if getattr(h, '_asset_app', False)]:
        root_logger.removeHandler(handler)
        handler.close()

    # File handler with rotation
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(logging.INFO)

    file_handler._asset_app = True
    console_handler._asset_app = True

    # Configure root logger
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Werkzeug request lines duplicate our own route logging
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    return root_logger


def create_app(config_name=None, overrides=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    # Setup logging
    logger = setup_logging(
        Path(app.config['LOG_DIR']),
        app.config['LOG_MAX_BYTES'],
        app.config['LOG_BACKUP_COUNT'],
    )
    logger.info("🚀 Initializing Asset Tracker Application...")

    # Initialize CORS
    cors_origins = app.config.get('CORS_ORIGINS', ['*'])
    if isinstance(cors_origins, str):
        cors_origins = cors_origins.split(',')

    CORS(app,
         resources={r"/api/*": {"origins": cors_origins, "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"], "allow_headers": ["Content-Type"]}},
         supports_credentials=True)

    # Initialize database
    database.configure(app.config['DATABASE_PATH'])
    database.init_database()
    logger.info(f"✅ Database initialized at {app.config['DATABASE_PATH']}")

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(depreciation_bp)
    logger.info("✅ Blueprints registered")

    # Session configuration
    @app.before_request
    def make_session_permanent():
        session.permanent = False

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    logger.info("✅ Application created successfully")
    return app


if __name__ == '__main__':
    app = create_app()
    logger = logging.getLogger(__name__)

    logger.info("══════════════════════════════════════════════════════════════")
    logger.info("   📦 Asset Tracker - Starting Server")
    logger.info("══════════════════════════════════════════════════════════════")
    logger.info(f"📍 API Endpoint: http://{Config.API_HOST}:{Config.API_PORT}/api/")
    logger.info("   - /api/register, /api/login, /api/logout")
    logger.info("   - /api/assets, /api/categories, /api/maintenance")
    logger.info("   - /api/depreciation/schedule, /api/dashboard")
    logger.info(f"📝 Logs: {Config.LOG_DIR}/asset_app.log")
    logger.info("══════════════════════════════════════════════════════════════")

    app.run(
        debug=app.config['DEBUG'],
        host=app.config['API_HOST'],
        port=app.config['API_PORT']
    )
