"""
Profile Routes - the current user's display details
"""

import logging

from flask import Blueprint, jsonify

from streakly.routes import current_user_id, get_engine, json_body

logger = logging.getLogger(__name__)

profile_bp = Blueprint("profile", __name__, url_prefix="/api")


@profile_bp.route("/profile", methods=["GET"])
def get_profile():
    return jsonify({"profile": get_engine().get_profile(current_user_id()).to_dict()})


@profile_bp.route("/profile", methods=["PUT"])
def update_profile():
    """
    Create or update the profile.

    Body: {"username": str, "email": str, "date_of_birth": str, "mobile_number": str}
    """
    user_id = current_user_id()
    profile = get_engine().update_profile(user_id, json_body())
    logger.info(f"Profile saved for {user_id}")
    return jsonify({"profile": profile.to_dict()})
