"""
Analytics - Time-bucketed summaries of tasks and habits

Groups completed tasks and habits by calendar date over a trailing window
and derives the series the dashboard charts: daily stats, weekly rollups,
priority distribution, completion trends and rule-based insights.

Dates are taken from each record's own timestamp (local time as stored).
A task is dated by completed_at, falling back to created_at.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from streakly.models import PRIORITIES, Habit, Task
from streakly.scoring import calculate_completion_rate, calculate_productivity_score, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
TREND_WINDOW_DAYS = 14

PRIORITY_COLORS = {
    "high": "#ef4444",
    "medium": "#f59e0b",
    "low": "#10b981",
}


def _task_date(task: Task) -> Optional[date]:
    stamp = task.completed_at or task.created_at
    return stamp.date() if stamp else None


def _trailing_dates(now: datetime, window_days: int) -> List[date]:
    today = now.date()
    return [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


def calculate_day_score(tasks_completed: int, habits_completed: int) -> int:
    """Score a single day: 15 per task, 20 per habit, capped at 100."""
    return min(round_half_up(tasks_completed * 15 + habits_completed * 20), 100)


def daily_counts(tasks: List[Task], habits: List[Habit]) -> Dict[date, Dict[str, int]]:
    """Count completed tasks and habits per calendar date."""
    task_days = Counter(_task_date(t) for t in tasks if t.completed and _task_date(t))
    habit_days = Counter(
        h.last_completed.date() for h in habits if h.completed_today and h.last_completed
    )
    days = set(task_days) | set(habit_days)
    return {d: {"tasks": task_days.get(d, 0), "habits": habit_days.get(d, 0)} for d in days}


def generate_daily_stats(
    tasks: List[Task], habits: List[Habit], now: datetime, window_days: int = DEFAULT_WINDOW_DAYS
) -> List[Dict[str, Any]]:
    """
    Per-day completion counts over the trailing window, oldest first.

    Returns:
        List of {date, tasks_completed, habits_completed, productivity_score}
    """
    counts = daily_counts(tasks, habits)
    series = []
    for day in _trailing_dates(now, max(1, window_days)):
        day_counts = counts.get(day, {"tasks": 0, "habits": 0})
        series.append(
            {
                "date": day.isoformat(),
                "tasks_completed": day_counts["tasks"],
                "habits_completed": day_counts["habits"],
                "productivity_score": calculate_day_score(day_counts["tasks"], day_counts["habits"]),
            }
        )
    return series


def _week_label(weeks_ago: int) -> str:
    if weeks_ago == 0:
        return "This Week"
    if weeks_ago == 1:
        return "Last Week"
    return f"{weeks_ago} Weeks Ago"


def generate_weekly_rollup(daily_stats: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Roll daily stats up into 7-day buckets ending today, most recent first.

    A trailing partial bucket is averaged over the days it actually has.
    """
    rollup = []
    weeks_ago = 0
    end = len(daily_stats)
    while end > 0:
        chunk = daily_stats[max(0, end - 7):end]
        days = len(chunk)
        rollup.append(
            {
                "week": _week_label(weeks_ago),
                "start_date": chunk[0]["date"],
                "end_date": chunk[-1]["date"],
                "avg_tasks_per_day": round(sum(d["tasks_completed"] for d in chunk) / days, 1),
                "avg_habits_per_day": round(sum(d["habits_completed"] for d in chunk) / days, 1),
                "completion_rate": round_half_up(sum(d["productivity_score"] for d in chunk) / days),
            }
        )
        end -= 7
        weeks_ago += 1
    return rollup


def generate_priority_distribution(tasks: List[Task]) -> List[Dict[str, Any]]:
    """Percentage share of each task priority, high first."""
    counts = Counter(t.priority for t in tasks)
    total = max(len(tasks), 1)
    return [
        {
            "category": f"{priority.title()} Priority",
            "priority": priority,
            "value": round(counts.get(priority, 0) / total * 100, 1),
            "color": PRIORITY_COLORS[priority],
        }
        for priority in reversed(PRIORITIES)
    ]


def generate_completion_trends(
    tasks: List[Task], habits: List[Habit], now: datetime, window_days: int = TREND_WINDOW_DAYS
) -> List[Dict[str, Any]]:
    return [
        {"date": d["date"], "tasks": d["tasks_completed"], "habits": d["habits_completed"]}
        for d in generate_daily_stats(tasks, habits, now, window_days)
    ]


def generate_insights(
    tasks: List[Task], habits: List[Habit], daily_stats: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Rule-based insights about recent performance.

    Rules:
    - average day score above 80: positive
    - longest streak of 7 or more: positive
    - task completion below 50%: warning
    - fewer than 3 habits: suggestion
    """
    insights = []

    avg_score = sum(d["productivity_score"] for d in daily_stats) / len(daily_stats) if daily_stats else 0
    if avg_score > 80:
        insights.append(
            {
                "id": "high-productivity",
                "type": "positive",
                "title": "Exceptional Performance! 🚀",
                "description": f"Your average productivity score is {round(avg_score)}%. You're crushing your goals!",
                "icon": "🏆",
                "value": round(avg_score, 1),
            }
        )

    longest_streak = max((h.streak for h in habits), default=0)
    if longest_streak >= 7:
        insights.append(
            {
                "id": "streak-master",
                "type": "positive",
                "title": "Streak Master! 🔥",
                "description": f"Your longest habit streak is {longest_streak} days. Consistency is key to success!",
                "icon": "🔥",
                "value": longest_streak,
            }
        )

    completion_rate = calculate_completion_rate(tasks)
    if completion_rate < 50:
        insights.append(
            {
                "id": "low-completion",
                "type": "warning",
                "title": "Focus Opportunity 💡",
                "description": (
                    f"Your task completion rate is {round(completion_rate)}%. "
                    "Try breaking down larger tasks into smaller ones."
                ),
                "icon": "💡",
            }
        )

    if len(habits) < 3:
        insights.append(
            {
                "id": "add-habits",
                "type": "suggestion",
                "title": "Build More Habits 🌱",
                "description": "Consider adding 2-3 key habits that align with your goals for compound growth.",
                "icon": "🌱",
            }
        )

    return insights


def summarize(
    tasks: List[Task], habits: List[Habit], window_days: int, now: datetime
) -> Dict[str, Any]:
    """
    Summarize tasks and habits over a trailing window.

    Args:
        tasks: Current task snapshot
        habits: Current habit snapshot
        window_days: Number of days in the window (at least 1)
        now: Current local time

    Returns:
        {daily_series, weekly_rollup, priority_distribution}
    """
    daily_series = generate_daily_stats(tasks, habits, now, window_days)
    return {
        "daily_series": daily_series,
        "weekly_rollup": generate_weekly_rollup(daily_series),
        "priority_distribution": generate_priority_distribution(tasks),
    }


def generate_analytics(
    tasks: List[Task], habits: List[Habit], now: datetime, window_days: int = DEFAULT_WINDOW_DAYS
) -> Dict[str, Any]:
    """Full analytics payload for the dashboard."""
    summary = summarize(tasks, habits, window_days, now)
    return {
        **summary,
        "productivity_score": calculate_productivity_score(tasks, habits).score,
        "insights": generate_insights(tasks, habits, summary["daily_series"]),
        "completion_trends": generate_completion_trends(tasks, habits, now),
    }


__all__ = [
    "calculate_day_score",
    "daily_counts",
    "generate_daily_stats",
    "generate_weekly_rollup",
    "generate_priority_distribution",
    "generate_completion_trends",
    "generate_insights",
    "summarize",
    "generate_analytics",
]
