"""
Tests for analytics aggregation.
"""

from datetime import timedelta

import pytest

from streakly.analytics import (
    calculate_day_score,
    generate_analytics,
    generate_insights,
    generate_priority_distribution,
    generate_weekly_rollup,
    summarize,
)


def test_day_score():
    """Test 15 points per task and 20 per habit, capped at 100."""
    assert calculate_day_score(0, 0) == 0
    assert calculate_day_score(2, 1) == 50
    assert calculate_day_score(10, 10) == 100


def test_daily_series_buckets_by_date(make_task, make_habit, now):
    """Test tasks land on their completion date and habits on today."""
    tasks = [
        make_task("t1", completed=True),
        make_task("t2", completed=True, completed_at=now - timedelta(days=2)),
        make_task("t3", completed=True, completed_at=now - timedelta(days=30)),
        make_task("t4"),
    ]
    habits = [make_habit("h1", completed_today=True), make_habit("h2")]

    series = summarize(tasks, habits, 7, now)["daily_series"]

    assert len(series) == 7
    assert series[0]["date"] == "2024-03-09"
    assert series[-1]["date"] == "2024-03-15"
    assert series[-1]["tasks_completed"] == 1
    assert series[-1]["habits_completed"] == 1
    assert series[-1]["productivity_score"] == 35
    assert series[-3]["tasks_completed"] == 1
    # Outside the window
    assert sum(d["tasks_completed"] for d in series) == 2


def test_task_without_completed_at_uses_created_at(make_task, now):
    task = make_task("t1", completed=True, completed_at=None, created_at=now - timedelta(days=1))
    series = summarize([task], [], 3, now)["daily_series"]
    assert [d["tasks_completed"] for d in series] == [0, 1, 0]


def test_empty_inputs(now):
    """Test empty snapshots give a zero-filled series."""
    summary = summarize([], [], 7, now)
    assert all(d["tasks_completed"] == 0 and d["productivity_score"] == 0 for d in summary["daily_series"])
    assert all(p["value"] == 0 for p in summary["priority_distribution"])


def test_weekly_rollup(now):
    """Test 14 days roll up into this week and last week, most recent first."""
    daily = summarize([], [], 14, now)["daily_series"]
    daily[-1]["tasks_completed"] = 7
    daily[-1]["productivity_score"] = 70

    rollup = generate_weekly_rollup(daily)

    assert [w["week"] for w in rollup] == ["This Week", "Last Week"]
    assert rollup[0]["avg_tasks_per_day"] == 1.0
    assert rollup[0]["completion_rate"] == 10
    assert rollup[0]["end_date"] == "2024-03-15"
    assert rollup[1]["avg_tasks_per_day"] == 0.0


def test_partial_week_averaged_over_its_days(now):
    daily = summarize([], [], 10, now)["daily_series"]
    rollup = generate_weekly_rollup(daily)
    assert len(rollup) == 2
    assert rollup[1]["start_date"] == "2024-03-06"


def test_priority_distribution(make_task):
    tasks = [make_task("a", priority="high"), make_task("b", priority="low"),
             make_task("c", priority="low"), make_task("d")]

    distribution = generate_priority_distribution(tasks)

    assert [d["priority"] for d in distribution] == ["high", "medium", "low"]
    assert [d["value"] for d in distribution] == [25.0, 25.0, 50.0]
    assert sum(d["value"] for d in distribution) == pytest.approx(100.0)


def test_insights(make_task, make_habit, now):
    """Test streak and low-completion insights fire from their rules."""
    tasks = [make_task("t1", completed=True), make_task("t2"), make_task("t3")]
    habits = [make_habit("h1", streak=9)]
    daily = summarize(tasks, habits, 7, now)["daily_series"]

    ids = [i["id"] for i in generate_insights(tasks, habits, daily)]

    assert "streak-master" in ids
    assert "low-completion" in ids
    assert "add-habits" in ids
    assert "high-productivity" not in ids


def test_generate_analytics_payload(sample_tasks, sample_habits, now):
    result = generate_analytics(sample_tasks, sample_habits, now, 7)
    assert result["productivity_score"] == 36
    assert len(result["completion_trends"]) == 14
    assert len(result["daily_series"]) == 7
