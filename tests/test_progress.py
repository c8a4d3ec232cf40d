"""Tests for session progress tracking."""

import pytest

from movie_ranker.core.progress import calculate_progress, calculate_target_battles


class TestTargetBattles:
    """Tests for per-policy battle targets."""

    @pytest.mark.parametrize(("items", "expected"), [(0, 0), (1, 0), (2, 1), (4, 6), (10, 45)])
    def test_complete(self, items, expected):
        assert calculate_target_battles(items, "complete") == expected

    def test_fixed_uses_limit(self):
        assert calculate_target_battles(10, "fixed", 12) == 12

    def test_fixed_defaults_to_50(self):
        assert calculate_target_battles(10, "fixed") == 50

    def test_per_movie(self):
        assert calculate_target_battles(4, "per-movie", 2) == 8

    def test_per_movie_defaults_to_10(self):
        assert calculate_target_battles(4, "per-movie") == 40

    def test_infinite_has_no_target(self):
        assert calculate_target_battles(4, "infinite", 5) is None


class TestCalculateProgress:
    """Tests for completion percent and completion decision."""

    def test_complete_four_items_fresh(self):
        progress = calculate_progress(4, "complete", None, 0)

        assert progress.total_items == 4
        assert progress.target_battles == 6
        assert progress.completed_battles == 0
        assert progress.completion_percent == 0
        assert progress.is_completed is False

    def test_one_of_three(self):
        progress = calculate_progress(3, "complete", None, 1)

        assert progress.completion_percent == pytest.approx(100 / 3)
        assert progress.is_completed is False

    def test_reaching_target_completes(self):
        progress = calculate_progress(5, "fixed", 5, 5)

        assert progress.is_completed is True
        assert progress.completion_percent == 100

    def test_over_completion_is_not_clamped(self):
        progress = calculate_progress(5, "fixed", 2, 3)

        assert progress.is_completed is True
        assert progress.completion_percent == 150

    def test_zero_target_has_no_percent(self):
        progress = calculate_progress(1, "complete", None, 0)

        assert progress.target_battles == 0
        assert progress.completion_percent is None

    @pytest.mark.parametrize("completed", [0, 1, 10000])
    def test_infinite_never_completes(self, completed):
        progress = calculate_progress(6, "infinite", None, completed)

        assert progress.is_completed is False
        assert progress.target_battles is None
        assert progress.completion_percent is None
        assert progress.completed_battles == completed

    @pytest.mark.parametrize("completed", range(0, 7))
    def test_percent_in_range_for_distinct_pairs(self, completed):
        progress = calculate_progress(4, "complete", None, completed)
        assert 0 <= progress.completion_percent <= 100
