"""
Routes Package - Flask Blueprints for Streakly

Blueprint structure:
- tasks_bp: Task and habit CRUD, habit toggling
- gamification_bp: Evaluation pass, challenge claims, level table
- analytics_bp: Analytics, suggestions, activity feed
- social_bp: Share cards, progress reports
- profile_bp: User profile
- health_bp: Health check

Every /api route except the health check is scoped to the user named in
the X-User-Id header.
"""

import logging

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from streakly.database import StorageError
from streakly.gamification import GamificationEngine, NotFoundError

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


class MissingUserError(Exception):
    """Raised when a request does not identify its user."""


def current_user_id() -> str:
    user_id = request.headers.get(USER_HEADER, "").strip()
    if not user_id:
        raise MissingUserError(f"{USER_HEADER} header required")
    return user_id


def get_engine() -> GamificationEngine:
    return current_app.extensions["streakly.engine"]


def json_body() -> dict:
    """Request JSON body as a dict (empty when absent)."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def register_error_handlers(app):
    """Map domain exceptions to JSON error responses."""

    @app.errorhandler(MissingUserError)
    def handle_missing_user(e):
        return jsonify({"error": str(e)}), 401

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        logger.warning(f"Rejected request to {request.path}: {e}")
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(StorageError)
    def handle_storage_error(e):
        logger.error(f"Storage unavailable for {request.path}: {e}")
        return jsonify({"error": "Storage unavailable"}), 503

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.error(f"Unhandled error on {request.path}: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


def register_all_blueprints(app):
    """
    Register all Flask blueprints with the application.

    Args:
        app: Flask application instance
    """
    from .analytics import analytics_bp
    from .gamification import gamification_bp
    from .health import health_bp
    from .profile import profile_bp
    from .social import social_bp
    from .tasks import tasks_bp

    for blueprint in (tasks_bp, gamification_bp, analytics_bp, social_bp, profile_bp, health_bp):
        app.register_blueprint(blueprint)
        logger.debug(f"Registered blueprint {blueprint.name}")

    register_error_handlers(app)


__all__ = ["register_all_blueprints", "current_user_id", "get_engine", "json_body"]
