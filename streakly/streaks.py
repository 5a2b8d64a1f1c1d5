"""
Streaks - Habit streak tiers and completion toggling

Tiers are named buckets of streak ranges shown next to each habit:

    Starting (0) -> Building (3) -> Consistent (7) -> Advanced (14)
    -> Expert (30) -> Master (50) -> Legendary (100)

Toggling a habit applies the streak invariant: +1 when today's completion is
set, -1 (floored at 0) when it is undone.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Dict, Optional

from streakly.models import Habit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakTier:
    """Display tier for a streak count."""

    index: int
    name: str
    threshold: int
    color: str
    icon: str
    next_threshold: Optional[int]

    def to_dict(self) -> Dict:
        return {
            "index": self.index,
            "name": self.name,
            "threshold": self.threshold,
            "color": self.color,
            "icon": self.icon,
            "next_threshold": self.next_threshold,
        }


# (threshold, name, color, icon), ascending
STREAK_TIERS = [
    (0, "Starting", "text-gray-600 bg-gray-100", "🌱"),
    (3, "Building", "text-orange-600 bg-orange-100", "💪"),
    (7, "Consistent", "text-yellow-600 bg-yellow-100", "🔥"),
    (14, "Advanced", "text-green-600 bg-green-100", "🌟"),
    (30, "Expert", "text-blue-600 bg-blue-100", "💎"),
    (50, "Master", "text-indigo-600 bg-indigo-100", "🏆"),
    (100, "Legendary", "text-purple-600 bg-purple-100", "👑"),
]

TIER_THRESHOLDS = [tier[0] for tier in STREAK_TIERS]

STREAK_MILESTONES = (7, 14, 30)


def get_streak_tier(streak: int) -> StreakTier:
    """
    Classify a streak count into its tier.

    The highest threshold the streak reaches wins. Negative streaks are treated as 0.

    Args:
        streak: Consecutive completion count

    Returns:
        StreakTier with next_threshold None at the top tier

    Example:
        >>> get_streak_tier(7).name
        'Consistent'
        >>> get_streak_tier(7).next_threshold
        14
    """
    index = bisect_right(TIER_THRESHOLDS, max(0, streak)) - 1
    threshold, name, color, icon = STREAK_TIERS[index]
    next_threshold = TIER_THRESHOLDS[index + 1] if index + 1 < len(TIER_THRESHOLDS) else None
    return StreakTier(index, name, threshold, color, icon, next_threshold)


def progress_to_next_tier(streak: int) -> float:
    """
    Percentage progress through the current tier band.

    Returns:
        0-100, 100 at the top tier
    """
    tier = get_streak_tier(streak)
    if tier.next_threshold is None:
        return 100.0
    band = tier.next_threshold - tier.threshold
    return round((max(0, streak) - tier.threshold) / band * 100, 1)


def _is_same_day(a: Optional[datetime], b: datetime) -> bool:
    return a is not None and a.date() == b.date()


def toggle_completion(habit: Habit, now: datetime, enforce_contiguity: bool = False) -> Habit:
    """
    Flip a habit's completion for today and adjust its streak.

    false -> true increments the streak by 1 and stamps last_completed.
    true -> false undoes today's completion: streak -1, floored at 0.

    With enforce_contiguity, a completion only extends the streak when the
    previous completion was yesterday (or today); otherwise the streak
    restarts at 1.

    Args:
        habit: Current habit snapshot
        now: Current local time
        enforce_contiguity: Require an unbroken day chain for increments

    Returns:
        Updated Habit (the input is not modified)
    """
    if habit.completed_today:
        return replace(habit, completed_today=False, streak=max(0, habit.streak - 1))

    new_streak = habit.streak + 1
    if enforce_contiguity and habit.last_completed is not None:
        yesterday = now - timedelta(days=1)
        if not (_is_same_day(habit.last_completed, now) or _is_same_day(habit.last_completed, yesterday)):
            logger.info(
                f"Streak for habit {habit.id} broken (last completed {habit.last_completed.date()}), restarting"
            )
            new_streak = 1

    return replace(habit, completed_today=True, streak=new_streak, last_completed=now)


def reset_for_new_day(habit: Habit, now: datetime) -> Habit:
    """
    Clear completed_today once the day it was set has passed.

    The streak itself is left alone; see toggle_completion for how breaks
    are handled.
    """
    if habit.completed_today and not _is_same_day(habit.last_completed, now):
        return replace(habit, completed_today=False)
    return habit


def milestone_reached(streak: int) -> Optional[int]:
    """Return the milestone a streak lands on exactly, if any."""
    return streak if streak in STREAK_MILESTONES else None


__all__ = [
    "StreakTier",
    "STREAK_TIERS",
    "STREAK_MILESTONES",
    "get_streak_tier",
    "progress_to_next_tier",
    "toggle_completion",
    "reset_for_new_day",
    "milestone_reached",
]
