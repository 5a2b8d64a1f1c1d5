"""
Streakly - Application Factory

Task and habit tracker with streaks, achievements, levels, daily challenges
and productivity analytics.
"""

import logging

from flask import Flask
from flask_cors import CORS

from streakly.config import get_config
from streakly.database import Storage
from streakly.gamification import GamificationEngine

logger = logging.getLogger(__name__)


def create_app(config_path=None, storage=None, clock=None):
    """
    Application factory for creating Flask app instances.

    Args:
        config_path: Optional path to config.yaml file
        storage: Optional Storage (defaults to the configured SQLite file)
        clock: Optional callable returning the current local time

    Returns:
        Configured Flask application instance
    """
    # Load environment variables
    from dotenv import load_dotenv

    load_dotenv()

    config = get_config(config_path)

    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": config.cors_origins}})

    if storage is None:
        storage = Storage(config.database_path)
    storage.init_db()

    engine_kwargs = {"clock": clock} if clock is not None else {}
    app.extensions["streakly.storage"] = storage
    app.extensions["streakly.engine"] = GamificationEngine(storage, config.gamification, **engine_kwargs)
    app.config["STREAKLY_CONFIG"] = config

    register_blueprints(app)
    logger.info(f"{config.app_name} app created (database: {storage.db_path})")

    return app


def register_blueprints(app):
    """Register all Flask blueprints."""
    from streakly.routes import register_all_blueprints

    register_all_blueprints(app)
