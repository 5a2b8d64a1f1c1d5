"""
Tests for productivity score and statistics bundle.
"""

import pytest

from streakly.scoring import (
    build_statistics,
    calculate_completion_rate,
    calculate_productivity_score,
    round_half_up,
)


def test_productivity_score_example(sample_tasks, sample_habits):
    """Test 10 tasks (4 done) and habits with streaks 7 and 3 (1 done) scores 36."""
    result = calculate_productivity_score(sample_tasks, sample_habits)

    assert result.score == 36
    assert result.task_component == pytest.approx(20)
    assert result.habit_component == pytest.approx(15)
    assert result.streak_bonus == pytest.approx(1)


def test_productivity_score_empty_is_zero():
    """Test no tasks and no habits yields 0 rather than dividing by zero."""
    assert calculate_productivity_score([], []).score == 0


def test_streak_bonus_capped(make_task, make_habit):
    """Test streak bonus caps at 20 and the score at 100."""
    tasks = [make_task("t1", completed=True)]
    habits = [make_habit("h1", streak=300, completed_today=True)]

    result = calculate_productivity_score(tasks, habits)

    assert result.streak_bonus == 20
    assert result.score == 100


def test_score_is_integer_in_range(sample_tasks, make_habit):
    """Test the score stays an integer between 0 and 100."""
    habits = [make_habit(f"h{i}", streak=i * 11) for i in range(6)]
    score = calculate_productivity_score(sample_tasks, habits).score
    assert isinstance(score, int)
    assert 0 <= score <= 100


def test_completion_rate(sample_tasks):
    """Test completion rate is a percentage."""
    assert calculate_completion_rate(sample_tasks) == pytest.approx(40.0)
    assert calculate_completion_rate([]) == 0.0


def test_build_statistics(sample_tasks, sample_habits):
    """Test the statistics bundle is derived from the snapshots."""
    bundle = build_statistics(sample_tasks, sample_habits, total_points=120, perfect_days=2)

    assert bundle.completed_tasks == 4
    assert bundle.total_tasks == 10
    assert bundle.completion_rate == pytest.approx(40.0)
    assert bundle.max_streak == 7
    assert bundle.total_habits == 2
    assert bundle.habits_completed_today == 1
    assert bundle.all_habits_completed is False
    assert bundle.perfect_days == 2
    assert bundle.total_points == 120


def test_all_habits_completed_needs_habits():
    """Test an empty habit list does not count as all habits completed."""
    assert build_statistics([], []).all_habits_completed is False


def test_all_habits_completed(make_habit):
    habits = [make_habit("h1", completed_today=True), make_habit("h2", completed_today=True)]
    assert build_statistics([], habits).all_habits_completed is True


@pytest.mark.parametrize("done_tasks,done_habits,streak", [(0, 0, 0), (3, 1, 45), (5, 2, 1000)])
def test_score_bounds(make_task, make_habit, done_tasks, done_habits, streak):
    """Test the score stays within 0-100 for mixed inputs."""
    tasks = [make_task(f"t{i}", completed=i < done_tasks) for i in range(5)]
    habits = [make_habit(f"h{i}", streak=streak, completed_today=i < done_habits) for i in range(2)]
    assert 0 <= calculate_productivity_score(tasks, habits).score <= 100


@pytest.mark.parametrize("streak,expected", [(5, 1), (15, 2), (145, 15)])
def test_half_point_scores_round_up(make_habit, streak, expected):
    """Test a streak bonus ending in .5 rounds up rather than to even."""
    habits = [make_habit("h1", streak=streak)]
    assert calculate_productivity_score([], habits).score == expected


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert round_half_up(0) == 0
