"""
Main Flask application factory.
"""
import logging

from flask import Flask
from flask_cors import CORS

from sheetsync.config import Config
from sheetsync.database import init_db
from sheetsync.services import build_request_coordinator

logger = logging.getLogger(__name__)


def create_app(config_class=Config, store=None, write_lock=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    CORS(app, origins=config_class.ALLOWED_ORIGINS)

    # Register blueprints
    from sheetsync.routes.main import main_bp
    from sheetsync.routes.api import api_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    # Initialize persistence + service layer
    if store is None and config_class.RECORD_STORE == 'sql':
        init_db(config_class.DATABASE_URL)
        logger.info(f"Record store: {config_class.DATABASE_URL}")

    app.extensions['request_coordinator'] = build_request_coordinator(
        config_class, store=store, write_lock=write_lock
    )
    logger.info(f"Data tables: {', '.join(config_class.DATA_TABLES)}")

    return app
