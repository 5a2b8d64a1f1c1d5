"""
Tests for streak tiers and habit toggling.
"""

from datetime import timedelta

import pytest

from streakly.streaks import (
    STREAK_TIERS,
    get_streak_tier,
    milestone_reached,
    progress_to_next_tier,
    reset_for_new_day,
    toggle_completion,
)


@pytest.mark.parametrize(
    "streak,name",
    [(0, "Starting"), (2, "Starting"), (3, "Building"), (13, "Consistent"), (14, "Advanced"),
     (30, "Expert"), (99, "Master"), (100, "Legendary"), (5000, "Legendary")],
)
def test_tier_names(streak, name):
    """Test that the highest threshold reached picks the tier."""
    assert get_streak_tier(streak).name == name


def test_seven_day_streak_is_consistent():
    """Test a 7-day streak lands in Consistent with 14 as the next threshold."""
    tier = get_streak_tier(7)

    assert tier.name == "Consistent"
    assert tier.icon == "🔥"
    assert tier.threshold == 7
    assert tier.next_threshold == 14


def test_top_tier_has_no_next_threshold():
    """Test the Legendary tier reports no next threshold."""
    tier = get_streak_tier(100)
    assert tier.index == len(STREAK_TIERS) - 1
    assert tier.next_threshold is None


def test_negative_streak_treated_as_zero():
    """Test that negative streaks classify as Starting."""
    assert get_streak_tier(-5).name == "Starting"


def test_tiers_are_monotonic():
    """Test a longer streak never maps to a lower tier."""
    indexes = [get_streak_tier(s).index for s in range(0, 150)]
    assert indexes == sorted(indexes)


def test_progress_to_next_tier():
    """Test progress through the 7-14 band."""
    assert progress_to_next_tier(7) == 0.0
    assert progress_to_next_tier(10) == pytest.approx(42.9)
    assert progress_to_next_tier(100) == 100.0


def test_toggle_on_increments_streak(make_habit, now):
    """Test completing a habit adds one to the streak and stamps last_completed."""
    habit = make_habit(streak=4)

    toggled = toggle_completion(habit, now)

    assert toggled.completed_today is True
    assert toggled.streak == 5
    assert toggled.last_completed == now
    assert habit.streak == 4  # input untouched


def test_toggle_off_undoes_completion(make_habit, now):
    """Test un-completing a habit takes one off the streak."""
    habit = make_habit(streak=5, completed_today=True)

    toggled = toggle_completion(habit, now)

    assert toggled.completed_today is False
    assert toggled.streak == 4


def test_toggle_off_floors_at_zero(make_habit, now):
    """Test the streak never goes negative."""
    habit = make_habit(streak=0, completed_today=True)
    assert toggle_completion(habit, now).streak == 0


def test_toggle_twice_restores_streak(make_habit, now):
    """Test on then off returns to the starting streak."""
    habit = make_habit(streak=3)
    assert toggle_completion(toggle_completion(habit, now), now).streak == 3


def test_contiguity_off_keeps_counting_after_gap(make_habit, now):
    """Test that without contiguity a gap does not reset the streak."""
    habit = make_habit(streak=5, last_completed=now - timedelta(days=3))
    assert toggle_completion(habit, now).streak == 6


def test_contiguity_restarts_broken_streak(make_habit, now):
    """Test that with contiguity a gap of more than a day restarts at 1."""
    habit = make_habit(streak=5, last_completed=now - timedelta(days=3))
    assert toggle_completion(habit, now, enforce_contiguity=True).streak == 1


def test_contiguity_extends_from_yesterday(make_habit, now):
    """Test that with contiguity a completion yesterday keeps the chain."""
    habit = make_habit(streak=5, last_completed=now - timedelta(days=1))
    assert toggle_completion(habit, now, enforce_contiguity=True).streak == 6


def test_reset_for_new_day_clears_stale_flag(make_habit, now):
    """Test completed_today is cleared once the completion day has passed."""
    habit = make_habit(streak=2, completed_today=True, last_completed=now - timedelta(days=1))

    fresh = reset_for_new_day(habit, now)

    assert fresh.completed_today is False
    assert fresh.streak == 2


def test_reset_for_new_day_keeps_today(make_habit, now):
    """Test a habit completed today is returned unchanged."""
    habit = make_habit(streak=2, completed_today=True)
    assert reset_for_new_day(habit, now) is habit


def test_milestones():
    """Test milestone detection at exactly 7, 14 and 30."""
    assert milestone_reached(7) == 7
    assert milestone_reached(14) == 14
    assert milestone_reached(30) == 30
    assert milestone_reached(8) is None
