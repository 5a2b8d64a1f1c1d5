"""
Tests for level progression.
"""

import pytest

from streakly.levels import USER_LEVELS, Level, calculate_level_progress, calculate_user_level, validate_levels


def test_progress_example():
    """Test 250 points sits 150 into Motivated with 50 to go (75%)."""
    progress = calculate_level_progress(250)

    assert progress.current_level_index == 1
    assert progress.current_level_title == "Motivated"
    assert progress.points_into_current_level == 150
    assert progress.points_to_next_level == 50
    assert progress.progress_percentage == pytest.approx(75.0)
    assert progress.next_level.title == "Focused"


def test_zero_points():
    progress = calculate_level_progress(0)
    assert progress.current_level_title == "Beginner"
    assert progress.progress_percentage == 0.0
    assert progress.points_to_next_level == 100


def test_exact_threshold_starts_new_level():
    """Test reaching a threshold exactly moves up a level."""
    progress = calculate_level_progress(300)
    assert progress.current_level_title == "Focused"
    assert progress.points_into_current_level == 0


def test_max_level():
    """Test the top level reports 100% and nothing to go."""
    progress = calculate_level_progress(9999)

    assert progress.current_level_title == "Legend"
    assert progress.is_max_level
    assert progress.next_level is None
    assert progress.points_to_next_level == 0
    assert progress.progress_percentage == 100.0


def test_negative_points_clamped():
    assert calculate_level_progress(-50).current_level_index == 0


def test_level_never_decreases_as_points_grow():
    indexes = [calculate_level_progress(p).current_level_index for p in range(0, 3000, 25)]
    assert indexes == sorted(indexes)


def test_calculate_user_level():
    assert calculate_user_level(1200).title == "Champion"


def test_to_dict_has_title():
    data = calculate_level_progress(250).to_dict()
    assert data["current_level_title"] == "Motivated"
    assert data["next_level"]["points_required"] == 300


def test_built_in_table_is_valid():
    validate_levels(USER_LEVELS)


@pytest.mark.parametrize(
    "thresholds,message",
    [
        ([0], "at least 2 levels"),
        ([10, 20], "First level must require 0"),
        ([0, 100, 100], "strictly increasing"),
    ],
)
def test_invalid_tables_rejected(thresholds, message):
    """Test level tables must start at 0 and strictly increase."""
    levels = [Level(i + 1, f"L{i}", t, "", "") for i, t in enumerate(thresholds)]
    with pytest.raises(ValueError, match=message):
        validate_levels(levels)


def test_progress_percentage_bounded():
    for points in range(0, 3000, 7):
        assert 0 <= calculate_level_progress(points).progress_percentage <= 100
