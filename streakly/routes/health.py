"""Health check route."""

from flask import Blueprint, current_app, jsonify

from streakly.startup import get_health_status

health_bp = Blueprint("health", __name__, url_prefix="/api")


@health_bp.route("/health", methods=["GET"])
def health():
    status = get_health_status(current_app.extensions["streakly.storage"])
    code = 200 if status["status"] == "healthy" else 503
    return jsonify(status), code
