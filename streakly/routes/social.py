"""
Social Routes - share cards and progress reports
"""

import logging

from flask import Blueprint, jsonify, request

from streakly.routes import current_user_id, get_engine
from streakly.social import format_progress_text, generate_progress_report

logger = logging.getLogger(__name__)

social_bp = Blueprint("social", __name__, url_prefix="/api")


@social_bp.route("/share/<share_type>", methods=["GET"])
def get_share_card(share_type):
    """
    Share card for one of the user's milestones.

    Query params:
        id: Achievement, habit or challenge id (optional)
    """
    content = get_engine().shareable(current_user_id(), share_type, request.args.get("id"))
    return jsonify(content.to_dict())


@social_bp.route("/progress-report", methods=["GET"])
def get_progress_report():
    """
    Progress report and its ready-to-post text.

    Query params:
        timeframe: daily, weekly (default) or monthly
    """
    user_id = current_user_id()
    engine = get_engine()
    report = generate_progress_report(
        engine.load_tasks(user_id),
        engine.load_habits(user_id),
        request.args.get("timeframe", "weekly"),
    )
    return jsonify({"report": report, "text": format_progress_text(report)})
