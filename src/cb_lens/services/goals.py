"""Goal progress evaluation."""

from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from uuid import UUID

from cb_lens.domain.context import UserContext
from cb_lens.domain.errors import InvalidGoalError
from cb_lens.domain.goals import GoalDefinition, GoalProgress, GoalType, TimePeriod
from cb_lens.domain.stats import PeriodSummary
from cb_lens.services.stats import StatsService

FULL_PROGRESS = 100.0

_SUMMARY_FIELDS = {
    GoalType.CALORIES: "total_calories",
    GoalType.PROTEIN: "total_protein",
    GoalType.CARBS: "total_carbs",
    GoalType.FAT: "total_fat",
}


class GoalRepository(Protocol):
    """Persistence interface for user goals."""

    def get_goal(self, user_id: UUID, goal_type: GoalType) -> GoalDefinition | None:
        """Return the user's active goal of a type, if present."""

    def list_active_goals(self, user_id: UUID) -> list[GoalDefinition]:
        """Return all active goals for a user."""

    def create_goal(
        self,
        user_id: UUID,
        goal_type: GoalType,
        target_value: float,
        time_period: TimePeriod,
    ) -> GoalDefinition:
        """Create and return a goal."""

    def update_current_value(self, goal_id: UUID, value: float) -> None:
        """Store a goal's current value."""

    def deactivate_goal(self, user_id: UUID, goal_id: UUID) -> None:
        """Mark one of the user's goals inactive."""


def evaluate(goal: GoalDefinition, current_value: float) -> GoalProgress:
    """Compare a current value against a goal's target."""
    if goal.target_value <= 0:
        raise InvalidGoalError(
            f"Goal {goal.goal_type.value} needs a positive target, "
            f"got {goal.target_value}"
        )
    raw = current_value * 100 / goal.target_value
    return GoalProgress(
        goal=goal,
        current_value=current_value,
        raw_progress_percent=raw,
        display_progress_percent=min(raw, FULL_PROGRESS),
        is_completed=raw >= FULL_PROGRESS,
    )


def current_value_for(goal: GoalDefinition, summary: PeriodSummary) -> float | None:
    """Derive a goal's current value from the matching period's totals.

    Water is tracked manually and yields ``None``.
    """
    if goal.goal_type is GoalType.MEALS_PER_DAY:
        if summary.days == 0:
            return 0.0
        return summary.meal_count / summary.days
    field_name = _SUMMARY_FIELDS.get(goal.goal_type)
    if field_name is None:
        return None
    return float(getattr(summary, field_name))


@dataclass
class GoalService:
    """Service for goal lifecycle and progress."""

    repository: GoalRepository
    stats_service: StatsService

    def create_goal(
        self,
        context: UserContext,
        goal_type: GoalType | str,
        target_value: float,
        time_period: TimePeriod | str = TimePeriod.DAILY,
    ) -> GoalDefinition:
        """Create a goal after validating its target."""
        if target_value <= 0:
            raise InvalidGoalError(f"Goal target must be positive, got {target_value}")
        return self.repository.create_goal(
            context.user_id, GoalType(goal_type), target_value, TimePeriod(time_period)
        )

    def deactivate_goal(self, context: UserContext, goal_id: UUID) -> None:
        """Deactivate one of the caller's goals."""
        self.repository.deactivate_goal(context.user_id, goal_id)

    def record_progress(
        self, context: UserContext, goal_type: GoalType | str, value: float
    ) -> GoalProgress | None:
        """Store a manually reported value and return the new progress."""
        goal = self.repository.get_goal(context.user_id, GoalType(goal_type))
        if goal is None:
            return None
        self.repository.update_current_value(goal.id, value)
        return evaluate(replace(goal, current_value=value), value)

    def refresh(
        self, context: UserContext, today: date | None = None
    ) -> list[GoalProgress]:
        """Recompute tracked goals from scans and return progress for all."""
        summaries: dict[TimePeriod, PeriodSummary] = {}
        progress: list[GoalProgress] = []
        for goal in self.repository.list_active_goals(context.user_id):
            if goal.time_period not in summaries:
                summaries[goal.time_period] = self._summary_for(
                    context, goal.time_period, today
                )
            value = current_value_for(goal, summaries[goal.time_period])
            if value is None:
                value = goal.current_value
            elif value != goal.current_value:
                self.repository.update_current_value(goal.id, value)
            progress.append(evaluate(replace(goal, current_value=value), value))
        return progress

    def _summary_for(
        self, context: UserContext, period: TimePeriod, today: date | None
    ) -> PeriodSummary:
        if period is TimePeriod.WEEKLY:
            return self.stats_service.get_week(context, today)
        return self.stats_service.get_recent_days(context, 1, today)
