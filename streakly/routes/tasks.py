"""
Task and Habit Routes

Completing a task or toggling a habit on earns action points; the engine
makes sure each award is credited once.
"""

import logging

from flask import Blueprint, jsonify

from streakly.routes import current_user_id, get_engine, json_body
from streakly.streaks import get_streak_tier

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api")


# ===== TASKS =====


@tasks_bp.route("/tasks", methods=["GET"])
def list_tasks():
    engine = get_engine()
    tasks = engine.load_tasks(current_user_id())
    return jsonify({"tasks": [t.to_dict() for t in tasks]})


@tasks_bp.route("/tasks", methods=["POST"])
def create_task():
    """
    Create a task.

    Body: {"text": str, "priority": "low"|"medium"|"high", "category": str, "due_date": iso}
    """
    user_id = current_user_id()
    task = get_engine().create_task(user_id, json_body())
    logger.info(f"Task created for {user_id}: {task.id}")
    return jsonify({"task": task.to_dict()}), 201


@tasks_bp.route("/tasks/<task_id>", methods=["PATCH"])
def update_task(task_id):
    task = get_engine().update_task(current_user_id(), task_id, json_body())
    return jsonify({"task": task.to_dict()})


@tasks_bp.route("/tasks/<task_id>", methods=["DELETE"])
def delete_task(task_id):
    get_engine().delete_task(current_user_id(), task_id)
    return jsonify({"success": True})


# ===== HABITS =====


@tasks_bp.route("/habits", methods=["GET"])
def list_habits():
    """List habits with their current streak tier."""
    habits = get_engine().load_habits(current_user_id())
    return jsonify(
        {
            "habits": [
                {**h.to_dict(), "tier": get_streak_tier(h.streak).to_dict()}
                for h in habits
            ]
        }
    )


@tasks_bp.route("/habits", methods=["POST"])
def create_habit():
    user_id = current_user_id()
    habit = get_engine().create_habit(user_id, json_body())
    logger.info(f"Habit created for {user_id}: {habit.id}")
    return jsonify({"habit": habit.to_dict()}), 201


@tasks_bp.route("/habits/<habit_id>", methods=["PATCH"])
def update_habit(habit_id):
    habit = get_engine().update_habit(current_user_id(), habit_id, json_body())
    return jsonify({"habit": habit.to_dict()})


@tasks_bp.route("/habits/<habit_id>", methods=["DELETE"])
def delete_habit(habit_id):
    get_engine().delete_habit(current_user_id(), habit_id)
    return jsonify({"success": True})


@tasks_bp.route("/habits/<habit_id>/toggle", methods=["POST"])
def toggle_habit(habit_id):
    """Toggle today's completion; returns the habit, its tier and points earned."""
    return jsonify(get_engine().toggle_habit(current_user_id(), habit_id))
