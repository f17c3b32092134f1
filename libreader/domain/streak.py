"""
Reading-streak arithmetic for reading goals.

This is a pure domain module with no infrastructure dependencies.

A streak only looks at the immediately preceding calendar day: marking a day
complete extends the streak when yesterday is already in the completed set and
resets it to 1 otherwise. Older gaps never count partially.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta


@dataclass(frozen=True)
class StreakState:
    """Completed calendar dates of a goal plus its current streak."""

    completed_days: tuple[date, ...] = ()
    current_streak: int = 0

    def __post_init__(self) -> None:
        if self.current_streak < 0:
            raise ValueError("Streak cannot be negative")

    def is_completed(self, day: date) -> bool:
        """Check whether a calendar day is already marked complete."""
        return day in self.completed_days


def mark_day_complete(state: StreakState, today: date, retain: int | None = None) -> StreakState:
    """
    Mark ``today`` as complete and recompute the streak.

    Args:
        state: Current goal state
        today: Calendar date to mark
        retain: Keep only this many most recent completed days (live path);
            ``None`` keeps everything (persisted store)

    Returns:
        The same state object when ``today`` was already complete, otherwise
        a new state with ``today`` added and the streak updated.
    """
    if state.is_completed(today):
        return state

    yesterday = today - timedelta(days=1)
    streak = state.current_streak + 1 if state.is_completed(yesterday) else 1

    days = (*state.completed_days, today)
    if retain is not None:
        days = tuple(sorted(days)[-retain:])

    return replace(state, completed_days=days, current_streak=streak)
