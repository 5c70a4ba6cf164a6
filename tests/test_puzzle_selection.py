"""Tests for daily puzzle selection and scoring."""

import pytest

from chesser_guesser.core.puzzle_selection import (
    MAX_PUZZLE_SCORE,
    InvalidPoolSizeError,
    calculate_puzzle_score,
    evaluation_side,
    select_daily_puzzle_indices,
    validate_determinism,
)


class TestSelectDailyPuzzleIndices:
    """Tests for stratified, date-seeded index selection."""

    def test_deterministic(self):
        for date in ("2024-01-15", "2025-06-30", "2026-10-17"):
            assert select_daily_puzzle_indices(date, 400) == select_daily_puzzle_indices(date, 400)

    def test_one_index_per_quarter(self):
        for day in range(1, 29):
            indices = select_daily_puzzle_indices(f"2024-02-{day:02d}", 400)
            assert len(indices) == 4
            for quarter, index in enumerate(indices):
                assert quarter * 100 <= index < (quarter + 1) * 100

    def test_date_sensitivity(self):
        assert select_daily_puzzle_indices("2024-01-15", 400) != select_daily_puzzle_indices(
            "2024-01-16", 400
        )

    def test_default_pool_size(self):
        assert select_daily_puzzle_indices("2024-01-15") == select_daily_puzzle_indices(
            "2024-01-15", 400
        )

    def test_minimum_pool(self):
        assert select_daily_puzzle_indices("2024-01-15", 4) == [0, 1, 2, 3]

    def test_last_quarter_takes_remainder(self):
        """With 7 puzzles the quarters are [0,1) [1,2) [2,3) [3,7)."""
        for day in range(1, 29):
            indices = select_daily_puzzle_indices(f"2024-03-{day:02d}", 7)
            assert indices[:3] == [0, 1, 2]
            assert 3 <= indices[3] < 7

    def test_within_pool_for_odd_sizes(self):
        for size in (5, 9, 13, 101, 401, 1003):
            indices = select_daily_puzzle_indices("2024-01-15", size)
            assert len(indices) == 4
            assert all(0 <= i < size for i in indices)
            assert indices == sorted(indices)

    @pytest.mark.parametrize("size", [0, 1, 3, -10])
    def test_rejects_small_pools(self, size):
        with pytest.raises(InvalidPoolSizeError):
            select_daily_puzzle_indices("2024-01-15", size)

    def test_invalid_calendar_date_still_selects(self):
        indices = select_daily_puzzle_indices("2024-13-40", 400)
        assert len(indices) == 4

    def test_validate_determinism(self):
        assert validate_determinism() is True
        assert validate_determinism(37) is True


class TestCalculatePuzzleScore:
    """Tests for the side-gated 0-100 score."""

    def test_perfect_guess(self):
        assert calculate_puzzle_score(100, 100) == 100
        assert calculate_puzzle_score(-350, -350) == 100
        assert calculate_puzzle_score(0, 0) == 100

    def test_wrong_side_scores_zero(self):
        assert calculate_puzzle_score(100, -100) == 0
        assert calculate_puzzle_score(-50, 50) == 0
        assert calculate_puzzle_score(0, 300) == 0
        assert calculate_puzzle_score(300, 0) == 0

    def test_equal_band_edges(self):
        assert evaluation_side(20) == "equal"
        assert evaluation_side(-20) == "equal"
        assert evaluation_side(21) == "white"
        assert evaluation_side(-21) == "black"
        assert calculate_puzzle_score(20, 21) == 0
        assert calculate_puzzle_score(-20, 20) == 95

    def test_linear_decay(self):
        # 200cp miss is halfway to the 400cp cutoff
        assert calculate_puzzle_score(100, 300) == 75
        assert calculate_puzzle_score(-100, -500) == 50

    def test_large_miss_keeps_participation_points(self):
        assert calculate_puzzle_score(50, 2000) == 50
        assert calculate_puzzle_score(-30, -900) == 50

    def test_rounds_half_up(self):
        # 4cp miss: 99.5 -> 100; 12cp miss: 98.5 -> 99
        assert calculate_puzzle_score(100, 104) == 100
        assert calculate_puzzle_score(100, 112) == 99

    def test_fractional_inputs(self):
        assert calculate_puzzle_score(100.5, 100.5) == 100

    def test_bounds(self):
        for guess in range(-400, 401, 20):
            for actual in range(-400, 401, 20):
                score = calculate_puzzle_score(guess, actual)
                assert 0 <= score <= MAX_PUZZLE_SCORE
                if guess == actual:
                    assert score == MAX_PUZZLE_SCORE
