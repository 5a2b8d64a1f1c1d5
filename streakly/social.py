"""
Social - Shareable posts and progress reports

Turns a milestone (an unlocked achievement, a streak, a level, a completed
challenge or a weekly summary) into a ready-to-post card with share text,
and builds plain-text progress reports from the current task and habit
snapshots.

Everything here is pure; the routes decide which milestone to share.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from streakly.models import Habit, Task
from streakly.scoring import round_half_up

logger = logging.getLogger(__name__)

SHARE_TYPES = ("achievement", "streak", "level", "challenge", "summary")
TIMEFRAMES = ("daily", "weekly", "monthly")

# (minimum task completion %, emoji, message), best first
REPORT_TIERS = [
    (80, "🚀", "Crushing it!"),
    (60, "💪", "Great progress!"),
    (0, "📈", "Building momentum!"),
]


@dataclass(frozen=True)
class ShareableContent:
    """A card the user can post: headline, description and share text."""

    type: str
    title: str
    description: str
    share_text: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "share_text": self.share_text,
            "data": self.data,
        }


def generate_shareable_content(share_type: str, data: Mapping[str, Any]) -> ShareableContent:
    """
    Build the share card for one milestone.

    Args:
        share_type: achievement, streak, level, challenge or summary
        data: Fields for that type:
            achievement/challenge: title, description
            streak: streak, habit_name
            level: title, level, points
            summary: tasks, habits, points

    Returns:
        ShareableContent. Unknown types get a generic update card.
    """
    data = dict(data)

    if share_type == "achievement":
        return ShareableContent(
            type="achievement",
            title=f"🏆 Achievement Unlocked: {data['title']}",
            description=data.get("description", ""),
            share_text=(
                f"🎉 Just unlocked the \"{data['title']}\" achievement! "
                f"{data.get('description', '')} #ProductivityGoals #Achievement"
            ),
            data=data,
        )

    if share_type == "streak":
        streak, habit_name = data["streak"], data["habit_name"]
        return ShareableContent(
            type="streak",
            title=f"🔥 {streak}-Day Streak!",
            description=f"Maintained a {streak}-day streak with \"{habit_name}\"",
            share_text=(
                f"🔥 Just hit a {streak}-day streak with \"{habit_name}\"! "
                "Consistency is key! #HabitBuilding #Productivity"
            ),
            data=data,
        )

    if share_type == "level":
        return ShareableContent(
            type="level",
            title=f"⭐ Level Up: {data['title']}",
            description=f"Reached {data['title']} (Level {data['level']}) with {data['points']} points!",
            share_text=(
                f"⭐ Level up! Just reached {data['title']} (Level {data['level']}) "
                "in my productivity journey! #LevelUp #Productivity"
            ),
            data=data,
        )

    if share_type == "challenge":
        return ShareableContent(
            type="challenge",
            title=f"✅ Challenge Complete: {data['title']}",
            description=data.get("description", ""),
            share_text=(
                f"✅ Completed today's challenge: \"{data['title']}\"! "
                "Feeling productive! #DailyChallenge #Productivity"
            ),
            data=data,
        )

    if share_type == "summary":
        tasks, habits, points = data["tasks"], data["habits"], data["points"]
        return ShareableContent(
            type="summary",
            title="📊 Weekly Progress Summary",
            description=f"Completed {tasks} tasks, maintained {habits} habits, and earned {points} points!",
            share_text=(
                f"📊 This week: {tasks} tasks completed, {habits} habits maintained, "
                f"{points} points earned! #WeeklyWins #Productivity"
            ),
            data=data,
        )

    logger.debug(f"No share card for type {share_type!r}, using the generic update")
    return ShareableContent(
        type="summary",
        title="Productivity Update",
        description="Making progress on my goals!",
        share_text="Making great progress on my productivity goals! #Productivity",
    )


def _percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def generate_progress_report(tasks: List[Task], habits: List[Habit], timeframe: str = "weekly") -> Dict[str, Any]:
    """
    Summarize the current snapshot for a progress post.

    The timeframe labels the report; rates come from the tasks and habits
    passed in.

    Returns:
        {timeframe, tasks: {completed, total, rate},
         habits: {completed, total, rate, avg_streak}, summary: {emoji, message}}

    Raises:
        ValueError: Unknown timeframe
    """
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"Invalid timeframe: {timeframe!r} (expected one of {', '.join(TIMEFRAMES)})")

    completed_tasks = sum(1 for t in tasks if t.completed)
    habits_done = sum(1 for h in habits if h.completed_today)
    task_rate = _percent(completed_tasks, len(tasks))
    avg_streak = round_half_up(sum(h.streak for h in habits) / len(habits)) if habits else 0

    emoji, message = next((e, m) for floor, e, m in REPORT_TIERS if task_rate >= floor)

    return {
        "timeframe": timeframe,
        "tasks": {"completed": completed_tasks, "total": len(tasks), "rate": task_rate},
        "habits": {
            "completed": habits_done,
            "total": len(habits),
            "rate": _percent(habits_done, len(habits)),
            "avg_streak": avg_streak,
        },
        "summary": {"emoji": emoji, "message": message},
    }


def format_progress_text(report: Mapping[str, Any]) -> str:
    """Render a progress report as a multi-line post."""
    tasks, habits, summary = report["tasks"], report["habits"], report["summary"]
    return "\n".join(
        [
            f"{summary['emoji']} {report['timeframe'].capitalize()} Update:",
            "",
            f"📝 Tasks: {tasks['completed']}/{tasks['total']} ({tasks['rate']}%)",
            f"🎯 Habits: {habits['completed']}/{habits['total']} ({habits['rate']}%)",
            f"🔥 Avg Streak: {habits['avg_streak']} days",
            "",
            f"{summary['message']} #Productivity #Goals",
        ]
    )


__all__ = [
    "SHARE_TYPES",
    "TIMEFRAMES",
    "ShareableContent",
    "generate_shareable_content",
    "generate_progress_report",
    "format_progress_text",
]
