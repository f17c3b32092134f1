"""ReadingGoal repository for database operations."""

import logging
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from libreader import models

logger = logging.getLogger(__name__)


class ReadingGoalRepository:
    """Repository for reading goals and their completed days."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def find_by_document(self, document_id: str) -> models.ReadingGoal | None:
        """Find the goal of a document with its completed days loaded."""
        stmt = (
            select(models.ReadingGoal)
            .where(models.ReadingGoal.document_id == document_id)
            .options(selectinload(models.ReadingGoal.completed_days))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, goal: models.ReadingGoal) -> models.ReadingGoal:
        """Add a goal and flush so it gets its ID."""
        self.db.add(goal)
        self.db.flush()
        return goal

    def add_completed_day(
        self, goal: models.ReadingGoal, day: date
    ) -> models.ReadingGoalCompletedDay:
        """Record one completed calendar date on a goal."""
        completed = models.ReadingGoalCompletedDay(reading_goal_id=goal.id, completed_date=day)
        self.db.add(completed)
        self.db.flush()
        return completed

    def replace_completed_days(self, goal: models.ReadingGoal, days: list[date]) -> None:
        """
        Replace every completed day of a goal.

        Repeated dates in the input are stored once.
        """
        self.db.execute(
            delete(models.ReadingGoalCompletedDay).where(
                models.ReadingGoalCompletedDay.reading_goal_id == goal.id
            )
        )
        for day in dict.fromkeys(days):
            self.db.add(models.ReadingGoalCompletedDay(reading_goal_id=goal.id, completed_date=day))
        self.db.flush()
        self.db.expire(goal, ["completed_days"])
