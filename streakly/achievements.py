"""
Achievements - Catalog and unlock evaluation for Streakly

Each achievement is unlocked once, when a statistic in the user's bundle
first reaches its threshold. Evaluation is a pure filter: it reports which
achievements are newly satisfied and leaves recording the unlock (and
crediting its points exactly once) to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

from streakly.models import ACHIEVEMENT_CATEGORIES, RARITIES, StatisticsBundle

logger = logging.getLogger(__name__)

Bundle = Union[StatisticsBundle, Mapping[str, Any]]

STATISTICS = tuple(StatisticsBundle().to_dict().keys())


@dataclass(frozen=True)
class AchievementDefinition:
    """
    Immutable catalog entry.

    The unlock condition is ``bundle[statistic] >= threshold``.
    """

    id: str
    title: str
    description: str
    icon: str
    points: int
    rarity: str
    category: str
    statistic: str
    threshold: float

    def __post_init__(self):
        if not self.id:
            raise ValueError("Achievement id must not be empty")
        if self.points < 0:
            raise ValueError(f"Achievement {self.id}: points must be non-negative")
        if self.rarity not in RARITIES:
            raise ValueError(f"Achievement {self.id}: invalid rarity {self.rarity!r}")
        if self.category not in ACHIEVEMENT_CATEGORIES:
            raise ValueError(f"Achievement {self.id}: invalid category {self.category!r}")
        if self.statistic not in STATISTICS:
            raise ValueError(f"Achievement {self.id}: unknown statistic {self.statistic!r}")

    def current_value(self, bundle: Bundle) -> float:
        """Read this achievement's statistic, defaulting missing values to 0."""
        value = bundle.get(self.statistic, 0)
        if value is None:
            return 0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0

    def condition(self, bundle: Bundle) -> bool:
        return self.current_value(bundle) >= self.threshold

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AchievementDefinition":
        return cls(
            id=data["id"],
            title=data.get("title", data["id"]),
            description=data.get("description", ""),
            icon=data.get("icon", "🏅"),
            points=int(data.get("points", 0)),
            rarity=data.get("rarity", "common"),
            category=data.get("category", "productivity"),
            statistic=data["statistic"],
            threshold=data["threshold"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "points": self.points,
            "rarity": self.rarity,
            "category": self.category,
        }


# Canonical catalog, in declaration order
ACHIEVEMENTS = [
    AchievementDefinition(
        id="first-task",
        title="Getting Started",
        description="Complete your first task",
        icon="✅",
        points=10,
        rarity="common",
        category="tasks",
        statistic="completed_tasks",
        threshold=1,
    ),
    AchievementDefinition(
        id="task-master",
        title="Task Master",
        description="Complete 100 tasks",
        icon="🎯",
        points=100,
        rarity="epic",
        category="tasks",
        statistic="completed_tasks",
        threshold=100,
    ),
    AchievementDefinition(
        id="habit-starter",
        title="Habit Builder",
        description="Create your first habit",
        icon="🌱",
        points=15,
        rarity="common",
        category="habits",
        statistic="total_habits",
        threshold=1,
    ),
    AchievementDefinition(
        id="streak-warrior",
        title="Streak Warrior",
        description="Maintain a 30-day streak",
        icon="🔥",
        points=150,
        rarity="rare",
        category="streaks",
        statistic="max_streak",
        threshold=30,
    ),
    AchievementDefinition(
        id="consistency-king",
        title="Consistency King",
        description="Complete all habits for 7 days",
        icon="👑",
        points=200,
        rarity="epic",
        category="consistency",
        statistic="perfect_days",
        threshold=7,
    ),
    AchievementDefinition(
        id="productivity-guru",
        title="Productivity Guru",
        description="Achieve 90% task completion rate",
        icon="⚡",
        points=75,
        rarity="rare",
        category="productivity",
        statistic="completion_rate",
        threshold=90,
    ),
    AchievementDefinition(
        id="legendary-achiever",
        title="Legendary Achiever",
        description="Reach 1000 total points",
        icon="🌟",
        points=300,
        rarity="legendary",
        category="productivity",
        statistic="total_points",
        threshold=1000,
    ),
]


def validate_catalog(catalog: Sequence[AchievementDefinition]) -> None:
    """Raise ValueError if achievement ids are not unique."""
    seen = set()
    for achievement in catalog:
        if achievement.id in seen:
            raise ValueError(f"Duplicate achievement id: {achievement.id}")
        seen.add(achievement.id)


def evaluate_achievements(
    bundle: Bundle,
    unlocked: Iterable[str],
    catalog: Sequence[AchievementDefinition] = ACHIEVEMENTS,
) -> List[AchievementDefinition]:
    """
    Find achievements that are satisfied but not yet unlocked.

    Pure and idempotent: calling twice with the same bundle and unlocked set
    returns the same list. Nothing is recorded here.

    Args:
        bundle: StatisticsBundle or a plain mapping of statistics
        unlocked: Achievement ids already credited
        catalog: Achievement definitions

    Returns:
        Newly satisfied definitions, in catalog order
    """
    unlocked_ids = frozenset(unlocked)
    return [a for a in catalog if a.id not in unlocked_ids and a.condition(bundle)]


def points_for(achievements: Iterable[AchievementDefinition]) -> int:
    return sum(a.points for a in achievements)


def achievement_progress(
    bundle: Bundle,
    unlocked: Iterable[str],
    catalog: Sequence[AchievementDefinition] = ACHIEVEMENTS,
) -> List[Dict[str, Any]]:
    """
    Progress view of every achievement in the catalog.

    Returns:
        List of dicts: achievement fields plus current, target, percentage
        and unlocked
    """
    unlocked_ids = frozenset(unlocked)
    result = []
    for achievement in catalog:
        current = achievement.current_value(bundle)
        if achievement.threshold > 0:
            percentage = min(100.0, current / achievement.threshold * 100)
        else:
            percentage = 100.0
        result.append(
            {
                **achievement.to_dict(),
                "current": current,
                "target": achievement.threshold,
                "percentage": round(max(0.0, percentage), 1),
                "unlocked": achievement.id in unlocked_ids,
            }
        )
    return result


__all__ = [
    "AchievementDefinition",
    "ACHIEVEMENTS",
    "STATISTICS",
    "validate_catalog",
    "evaluate_achievements",
    "points_for",
    "achievement_progress",
]
