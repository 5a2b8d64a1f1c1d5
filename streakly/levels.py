"""
Levels - Point thresholds and level progression

Levels are an ordered table of point thresholds. A user's level is the
highest threshold their total points reach; the top level has no upper
bound.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Level:
    """One entry in the level table."""

    level: int
    title: str
    points_required: int
    color: str = ""
    icon: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Level":
        return cls(
            level=int(data["level"]),
            title=data["title"],
            points_required=int(data["points_required"]),
            color=data.get("color", ""),
            icon=data.get("icon", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "title": self.title,
            "points_required": self.points_required,
            "color": self.color,
            "icon": self.icon,
        }


@dataclass(frozen=True)
class LevelProgress:
    """Where a point total sits in the level table."""

    current_level_index: int
    current_level: Level
    next_level: Optional[Level]
    points_into_current_level: int
    points_to_next_level: int
    progress_percentage: float
    total_points: int

    @property
    def current_level_title(self) -> str:
        return self.current_level.title

    @property
    def is_max_level(self) -> bool:
        return self.next_level is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_level_index": self.current_level_index,
            "current_level_title": self.current_level_title,
            "current_level": self.current_level.to_dict(),
            "next_level": self.next_level.to_dict() if self.next_level else None,
            "points_into_current_level": self.points_into_current_level,
            "points_to_next_level": self.points_to_next_level,
            "progress_percentage": self.progress_percentage,
            "total_points": self.total_points,
        }


USER_LEVELS = [
    Level(1, "Beginner", 0, "text-gray-600 bg-gray-100", "🌱"),
    Level(2, "Motivated", 100, "text-green-600 bg-green-100", "💪"),
    Level(3, "Focused", 300, "text-blue-600 bg-blue-100", "🎯"),
    Level(4, "Dedicated", 600, "text-purple-600 bg-purple-100", "⭐"),
    Level(5, "Champion", 1000, "text-yellow-600 bg-yellow-100", "🏆"),
    Level(6, "Master", 1500, "text-orange-600 bg-orange-100", "💎"),
    Level(7, "Legend", 2500, "text-red-600 bg-red-100", "👑"),
]


def validate_levels(levels: Sequence[Level]) -> None:
    """
    Check a level table.

    Raises:
        ValueError: Fewer than 2 levels, first threshold not 0, or
            thresholds not strictly increasing
    """
    if len(levels) < 2:
        raise ValueError("Level table needs at least 2 levels")
    if levels[0].points_required != 0:
        raise ValueError("First level must require 0 points")
    for previous, current in zip(levels, levels[1:]):
        if current.points_required <= previous.points_required:
            raise ValueError(
                f"Level thresholds must be strictly increasing: "
                f"{previous.title} ({previous.points_required}) >= "
                f"{current.title} ({current.points_required})"
            )


def calculate_level_progress(total_points: int, levels: Sequence[Level] = USER_LEVELS) -> LevelProgress:
    """
    Find the current level and progress toward the next one.

    Negative totals are treated as 0.

    Args:
        total_points: Cumulative points
        levels: Level table, ascending by points_required

    Returns:
        LevelProgress; at max level progress is 100 and points_to_next_level 0

    Example:
        250 points with thresholds [0, 100, 300, ...] -> index 1,
        150 points into the level, 50 to go, 75% progress
    """
    total_points = max(0, int(total_points))
    thresholds = [level.points_required for level in levels]
    index = max(0, bisect_right(thresholds, total_points) - 1)

    current = levels[index]
    points_into = total_points - current.points_required

    if index == len(levels) - 1:
        return LevelProgress(index, current, None, points_into, 0, 100.0, total_points)

    following = levels[index + 1]
    span = following.points_required - current.points_required
    progress = max(0.0, min(100.0, points_into / span * 100))

    return LevelProgress(
        current_level_index=index,
        current_level=current,
        next_level=following,
        points_into_current_level=points_into,
        points_to_next_level=following.points_required - total_points,
        progress_percentage=round(progress, 1),
        total_points=total_points,
    )


def calculate_user_level(total_points: int, levels: Sequence[Level] = USER_LEVELS) -> Level:
    return calculate_level_progress(total_points, levels).current_level


__all__ = [
    "Level",
    "LevelProgress",
    "USER_LEVELS",
    "validate_levels",
    "calculate_level_progress",
    "calculate_user_level",
]
