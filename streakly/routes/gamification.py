"""
Gamification Routes - evaluation pass, challenge claims and level table
"""

import logging

from flask import Blueprint, jsonify

from streakly.routes import current_user_id, get_engine
from streakly.streaks import get_streak_tier, progress_to_next_tier

logger = logging.getLogger(__name__)

gamification_bp = Blueprint("gamification", __name__, url_prefix="/api/gamification")


@gamification_bp.route("", methods=["GET"])
def get_gamification():
    """
    Run an evaluation pass and return the user's gamification dashboard.

    Response includes statistics, productivity score, level progress,
    achievements (with progress), newly unlocked achievements, the daily
    challenge batch and each habit's streak tier.
    """
    user_id = current_user_id()
    engine = get_engine()
    result = engine.evaluate(user_id)

    habits = engine.storage.list_habits(user_id)
    payload = result.to_dict()
    payload["streaks"] = [
        {
            "habit_id": h.id,
            "name": h.name,
            "streak": h.streak,
            "tier": get_streak_tier(h.streak).to_dict(),
            "progress_to_next_tier": progress_to_next_tier(h.streak),
        }
        for h in habits
    ]
    return jsonify(payload)


@gamification_bp.route("/challenges/<challenge_id>/claim", methods=["POST"])
def claim_challenge(challenge_id):
    """Claim a completed challenge. Claiming twice credits the reward once."""
    return jsonify(get_engine().claim(current_user_id(), challenge_id))


@gamification_bp.route("/levels", methods=["GET"])
def get_levels():
    """Level table plus the user's progress through it."""
    engine = get_engine()
    progress = engine.level(current_user_id())
    return jsonify(
        {
            "levels": [level.to_dict() for level in engine.config.levels],
            "progress": progress.to_dict(),
        }
    )
