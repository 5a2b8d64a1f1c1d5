"""
Tests for the achievement catalog and evaluator.
"""

import pytest

from streakly.achievements import (
    ACHIEVEMENTS,
    AchievementDefinition,
    achievement_progress,
    evaluate_achievements,
    points_for,
    validate_catalog,
)
from streakly.models import StatisticsBundle


def _ids(achievements):
    return [a.id for a in achievements]


def test_catalog_ids_are_unique():
    """Test the built-in catalog passes validation."""
    validate_catalog(ACHIEVEMENTS)
    assert len({a.id for a in ACHIEVEMENTS}) == len(ACHIEVEMENTS) == 7


def test_first_task_unlocks():
    """Test one completed task unlocks first-task only."""
    bundle = StatisticsBundle(completed_tasks=1, total_tasks=3, completion_rate=33.3)
    assert _ids(evaluate_achievements(bundle, set())) == ["first-task"]


def test_already_unlocked_not_returned():
    """Test achievements in the unlocked set are never returned again."""
    bundle = StatisticsBundle(completed_tasks=1, total_tasks=1, completion_rate=100.0)
    assert _ids(evaluate_achievements(bundle, {"first-task", "productivity-guru"})) == []


def test_evaluation_is_idempotent():
    """Test evaluating twice with the same inputs gives the same result."""
    bundle = StatisticsBundle(completed_tasks=120, total_tasks=120, completion_rate=100.0, total_habits=2)
    first = evaluate_achievements(bundle, set())
    second = evaluate_achievements(bundle, set())
    assert first == second


def test_results_in_catalog_order():
    """Test multiple unlocks come back in catalog order."""
    bundle = StatisticsBundle(
        completed_tasks=100,
        total_tasks=100,
        completion_rate=100.0,
        max_streak=30,
        total_habits=1,
        perfect_days=7,
        total_points=1000,
    )
    assert _ids(evaluate_achievements(bundle, set())) == _ids(ACHIEVEMENTS)


def test_thresholds_are_inclusive():
    """Test a statistic exactly at the threshold unlocks."""
    bundle = StatisticsBundle(max_streak=30, perfect_days=7, completion_rate=90.0, total_points=1000)
    ids = _ids(evaluate_achievements(bundle, set()))
    assert {"streak-warrior", "consistency-king", "productivity-guru", "legendary-achiever"} <= set(ids)


def test_plain_mapping_with_missing_fields():
    """Test a dict bundle missing statistics treats them as 0."""
    assert evaluate_achievements({"completed_tasks": 1}, set())[0].id == "first-task"
    assert evaluate_achievements({"completed_tasks": None}, set()) == []


def test_bundle_round_trip_gives_same_unlocks():
    """Test serializing a bundle does not change which achievements unlock."""
    bundle = StatisticsBundle(completed_tasks=5, total_tasks=5, completion_rate=100.0, total_habits=1)
    restored = StatisticsBundle.from_dict(bundle.to_dict())

    assert restored == bundle
    assert evaluate_achievements(restored, set()) == evaluate_achievements(bundle, set())


def test_points_for():
    achievements = [a for a in ACHIEVEMENTS if a.id in ("first-task", "habit-starter")]
    assert points_for(achievements) == 25


def test_achievement_progress():
    """Test the progress view reports current value, percentage and unlock flag."""
    bundle = StatisticsBundle(completed_tasks=50)
    progress = {p["id"]: p for p in achievement_progress(bundle, {"first-task"})}

    assert progress["task-master"]["current"] == 50
    assert progress["task-master"]["percentage"] == 50.0
    assert progress["task-master"]["unlocked"] is False
    assert progress["first-task"]["percentage"] == 100.0
    assert progress["first-task"]["unlocked"] is True


def test_definition_from_dict():
    """Test building a custom achievement from config."""
    achievement = AchievementDefinition.from_dict(
        {"id": "ten-tasks", "statistic": "completed_tasks", "threshold": 10, "points": 20}
    )
    assert achievement.condition(StatisticsBundle(completed_tasks=10))
    assert not achievement.condition(StatisticsBundle(completed_tasks=9))


def test_unknown_statistic_rejected():
    with pytest.raises(ValueError, match="unknown statistic"):
        AchievementDefinition.from_dict({"id": "x", "statistic": "karma", "threshold": 1})


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError, match="Duplicate achievement id"):
        validate_catalog([ACHIEVEMENTS[0], ACHIEVEMENTS[0]])
