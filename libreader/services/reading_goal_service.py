"""Service layer for per-document reading goals and streaks."""

from collections.abc import Callable
from datetime import UTC, date, datetime

import structlog
from sqlalchemy.orm import Session

from libreader import models
from libreader.domain import StreakState, mark_day_complete
from libreader.exceptions import DocumentNotFoundError, ReadingGoalNotFoundError
from libreader.mappers import DocumentMapper
from libreader.repositories import DocumentRepository, ReadingGoalRepository
from libreader.schemas import ReadingGoalProjection, ReadingGoalRequest

logger = structlog.get_logger(__name__)


def utc_today() -> date:
    """Return the current calendar date in UTC."""
    return datetime.now(UTC).date()


class ReadingGoalService:
    """Service for reading goals; the persisted streak keeps every completed day."""

    def __init__(
        self,
        db: Session,
        document_repository: DocumentRepository,
        goal_repository: ReadingGoalRepository,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.db = db
        self.document_repository = document_repository
        self.goal_repository = goal_repository
        self.today = today
        self.mapper = DocumentMapper()

    def _reload(self, goal: models.ReadingGoal) -> ReadingGoalProjection:
        self.db.expire_all()
        reloaded = self.goal_repository.find_by_document(goal.document_id)
        projection = self.mapper.goal_to_projection(reloaded)
        if projection is None:
            raise ReadingGoalNotFoundError(goal.document_id)
        return projection

    def set_goal(self, document_id: str, request: ReadingGoalRequest) -> ReadingGoalProjection:
        """
        Create or update a document's goal.

        ``completedDays`` replaces the stored days when given;
        ``currentStreak`` is only changed when given.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if not self.document_repository.exists(document_id):
            raise DocumentNotFoundError(document_id)

        goal = self.goal_repository.find_by_document(document_id)
        if goal is None:
            goal = self.goal_repository.add(
                models.ReadingGoal(
                    document_id=document_id,
                    daily_minutes=request.daily_minutes,
                    current_streak=request.current_streak or 0,
                )
            )
        else:
            goal.daily_minutes = request.daily_minutes
            if request.current_streak is not None:
                goal.current_streak = request.current_streak

        if request.completed_days is not None:
            self.goal_repository.replace_completed_days(goal, request.completed_days)

        self.db.commit()
        logger.info(
            "reading_goal_saved", document_id=document_id, daily_minutes=goal.daily_minutes
        )
        return self._reload(goal)

    def mark_today_complete(self, document_id: str) -> ReadingGoalProjection:
        """
        Mark today complete on a document's goal and update its streak.

        Marking a day that is already complete changes nothing.

        Raises:
            ReadingGoalNotFoundError: If the document has no goal
        """
        goal = self.goal_repository.find_by_document(document_id)
        if goal is None:
            raise ReadingGoalNotFoundError(document_id)

        today = self.today()
        state = StreakState(
            completed_days=tuple(d.completed_date for d in goal.completed_days),
            current_streak=goal.current_streak,
        )
        new_state = mark_day_complete(state, today)
        if new_state is state:
            return self._reload(goal)

        self.goal_repository.add_completed_day(goal, today)
        goal.current_streak = new_state.current_streak
        self.db.commit()

        logger.info(
            "reading_goal_day_completed",
            document_id=document_id,
            day=today.isoformat(),
            streak=new_state.current_streak,
        )
        return self._reload(goal)
