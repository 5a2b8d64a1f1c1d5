"""
Analytics Routes - trailing-window analytics, suggestions and activity feed
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from streakly.analytics import generate_analytics
from streakly.routes import current_user_id, get_engine, json_body
from streakly.scoring import calculate_productivity_score
from streakly.suggestions import (
    generate_habit_suggestions,
    generate_optimization_suggestions,
    generate_task_suggestions,
    optimal_schedule,
)

logger = logging.getLogger(__name__)

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api")

MAX_WINDOW_DAYS = 365


def _window_days() -> int:
    """Parse ?window=N, falling back to the configured default."""
    raw = request.args.get("window")
    if raw is None:
        return current_app.config["STREAKLY_CONFIG"].default_window_days
    try:
        window = int(raw)
    except ValueError:
        raise ValueError(f"window must be an integer, got {raw!r}") from None
    if not 1 <= window <= MAX_WINDOW_DAYS:
        raise ValueError(f"window must be between 1 and {MAX_WINDOW_DAYS} days")
    return window


@analytics_bp.route("/analytics", methods=["GET"])
def get_analytics():
    """
    Daily series, weekly rollup, priority distribution, trends and insights.

    Query params:
        window: Trailing window in days (default from config, usually 7)
    """
    user_id = current_user_id()
    engine = get_engine()
    window = _window_days()
    analytics = generate_analytics(
        engine.load_tasks(user_id), engine.load_habits(user_id), engine.clock(), window
    )
    return jsonify({"window_days": window, **analytics})


@analytics_bp.route("/suggestions", methods=["GET"])
def get_suggestions():
    user_id = current_user_id()
    engine = get_engine()
    tasks = engine.load_tasks(user_id)
    habits = engine.load_habits(user_id)
    score = calculate_productivity_score(tasks, habits).score
    return jsonify(
        {
            "tasks": generate_task_suggestions(tasks, engine.clock()),
            "habits": generate_habit_suggestions(habits),
            "optimizations": generate_optimization_suggestions(tasks, habits, score),
            "schedule": optimal_schedule(),
        }
    )


@analytics_bp.route("/activities", methods=["GET"])
def get_activities():
    limit = request.args.get("limit", 50, type=int)
    activities = get_engine().storage.list_activities(current_user_id(), max(1, min(limit, 200)))
    return jsonify({"activities": activities})


@analytics_bp.route("/activities", methods=["POST"])
def create_activity():
    """
    Add an entry to the activity feed.

    Body: {"type": str, "message": str, "icon": str}
    """
    activity = get_engine().log_activity(current_user_id(), json_body())
    return jsonify({"activity": activity}), 201
