"""Pure domain logic with no infrastructure dependencies."""

from libreader.domain.streak import StreakState, mark_day_complete

__all__ = ["StreakState", "mark_day_complete"]
