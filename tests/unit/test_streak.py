"""Tests for reading-streak arithmetic."""

from datetime import date, timedelta

import pytest

from libreader.domain import StreakState, mark_day_complete


class TestMarkDayComplete:
    """Test suite for mark_day_complete."""

    @pytest.fixture
    def two_day_streak(self) -> StreakState:
        return StreakState(
            completed_days=(date(2024, 1, 1), date(2024, 1, 2)),
            current_streak=2,
        )

    def test_consecutive_day_extends_streak(self, two_day_streak: StreakState) -> None:
        state = mark_day_complete(two_day_streak, date(2024, 1, 3))
        assert state.current_streak == 3
        assert date(2024, 1, 3) in state.completed_days

    def test_gap_resets_streak_to_one(self, two_day_streak: StreakState) -> None:
        state = mark_day_complete(two_day_streak, date(2024, 1, 5))
        assert state.current_streak == 1

    def test_first_day_starts_streak(self) -> None:
        state = mark_day_complete(StreakState(), date(2024, 3, 10))
        assert state.current_streak == 1
        assert state.completed_days == (date(2024, 3, 10),)

    def test_already_completed_day_is_a_no_op(self, two_day_streak: StreakState) -> None:
        state = mark_day_complete(two_day_streak, date(2024, 1, 2))
        assert state is two_day_streak

    def test_input_state_is_not_mutated(self, two_day_streak: StreakState) -> None:
        mark_day_complete(two_day_streak, date(2024, 1, 3))
        assert two_day_streak.completed_days == (date(2024, 1, 1), date(2024, 1, 2))
        assert two_day_streak.current_streak == 2

    def test_retain_keeps_most_recent_days(self) -> None:
        start = date(2024, 1, 1)
        state = StreakState(
            completed_days=tuple(start + timedelta(days=i) for i in range(5)),
            current_streak=5,
        )

        state = mark_day_complete(state, start + timedelta(days=5), retain=3)

        assert state.completed_days == tuple(start + timedelta(days=i) for i in (3, 4, 5))
        assert state.current_streak == 6

    def test_no_retain_keeps_everything(self) -> None:
        start = date(2024, 1, 1)
        state = StreakState()
        for offset in range(120):
            state = mark_day_complete(state, start + timedelta(days=offset))

        assert len(state.completed_days) == 120
        assert state.current_streak == 120


class TestStreakState:
    def test_negative_streak_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            StreakState(current_streak=-1)

    def test_is_completed(self) -> None:
        state = StreakState(completed_days=(date(2024, 1, 1),), current_streak=1)
        assert state.is_completed(date(2024, 1, 1))
        assert not state.is_completed(date(2024, 1, 2))
