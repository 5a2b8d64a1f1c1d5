"""
Scoring Module - Productivity scoring and statistics

This module centralizes the scoring logic for Streakly.

Scoring components (max points):
1. Task throughput (50): share of tasks completed
2. Habit consistency (30): share of habits completed today
3. Streak bonus (20): total streak days / 10, capped

The cap on the streak bonus keeps a single very old habit from saturating
the score. The composite score is clamped to 0-100.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List

from streakly.models import Habit, StatisticsBundle, Task

logger = logging.getLogger(__name__)

TASK_WEIGHT = 50
HABIT_WEIGHT = 30
STREAK_BONUS_CAP = 20
STREAK_BONUS_DIVISOR = 10


@dataclass(frozen=True)
class ProductivityScore:
    """Composite productivity score with its intermediate values."""

    score: int
    completion_rate: float
    habit_completion: float
    task_component: float
    habit_component: float
    streak_bonus: float

    def to_dict(self) -> Dict:
        return {
            "score": self.score,
            "completion_rate": round(self.completion_rate, 1),
            "habit_completion": round(self.habit_completion, 3),
            "task_component": round(self.task_component, 2),
            "habit_component": round(self.habit_component, 2),
            "streak_bonus": round(self.streak_bonus, 2),
        }


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 rounding up."""
    return int(math.floor(value + 0.5))


def calculate_completion_rate(tasks: Iterable[Task]) -> float:
    """
    Percentage of tasks completed.

    Returns:
        0-100, 0 when there are no tasks
    """
    tasks = list(tasks)
    if not tasks:
        return 0.0
    return sum(1 for t in tasks if t.completed) / len(tasks) * 100


def calculate_productivity_score(tasks: List[Task], habits: List[Habit]) -> ProductivityScore:
    """
    Calculate the composite productivity score.

    Denominators are floored at 1, so no tasks and no habits yields 0.

    Args:
        tasks: Current task snapshot
        habits: Current habit snapshot

    Returns:
        ProductivityScore with score in [0, 100]

    Example:
        10 tasks (4 done), habits with streaks 7 and 3 (1 done today):
        40% * 50 + 50% * 30 + min(10 / 10, 20) = 20 + 15 + 1 = 36
    """
    completed_tasks = sum(1 for t in tasks if t.completed)
    completed_habits = sum(1 for h in habits if h.completed_today)

    task_ratio = completed_tasks / max(len(tasks), 1)
    habit_ratio = completed_habits / max(len(habits), 1)

    task_component = task_ratio * TASK_WEIGHT
    habit_component = habit_ratio * HABIT_WEIGHT
    streak_bonus = min(sum(h.streak for h in habits) / STREAK_BONUS_DIVISOR, STREAK_BONUS_CAP)

    score = round_half_up(clamp(task_component + habit_component + streak_bonus))

    return ProductivityScore(
        score=score,
        completion_rate=task_ratio * 100 if tasks else 0.0,
        habit_completion=habit_ratio,
        task_component=task_component,
        habit_component=habit_component,
        streak_bonus=streak_bonus,
    )


def build_statistics(
    tasks: List[Task],
    habits: List[Habit],
    total_points: int = 0,
    perfect_days: int = 0,
) -> StatisticsBundle:
    """
    Build the statistics bundle consumed by achievements and challenges.

    Args:
        tasks: Current task snapshot
        habits: Current habit snapshot
        total_points: Persisted point total
        perfect_days: Persisted count of days with every habit done

    Returns:
        StatisticsBundle
    """
    completed_tasks = sum(1 for t in tasks if t.completed)
    habits_completed_today = sum(1 for h in habits if h.completed_today)

    return StatisticsBundle(
        completed_tasks=completed_tasks,
        total_tasks=len(tasks),
        completion_rate=calculate_completion_rate(tasks),
        max_streak=max((h.streak for h in habits), default=0),
        total_habits=len(habits),
        habits_completed_today=habits_completed_today,
        all_habits_completed=len(habits) > 0 and habits_completed_today == len(habits),
        perfect_days=max(0, perfect_days),
        total_points=max(0, total_points),
    )


__all__ = [
    "ProductivityScore",
    "clamp",
    "round_half_up",
    "calculate_completion_rate",
    "calculate_productivity_score",
    "build_statistics",
]
