"""Domain models for nutrition goals."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class GoalType(str, Enum):
    """What a goal tracks."""

    CALORIES = "calories"
    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"
    WATER = "water"
    MEALS_PER_DAY = "meals_per_day"


class TimePeriod(str, Enum):
    """Period a goal target applies to."""

    DAILY = "daily"
    WEEKLY = "weekly"


@dataclass(frozen=True)
class GoalDefinition:
    """A user's target for one goal type."""

    id: UUID
    user_id: UUID
    goal_type: GoalType
    target_value: float
    time_period: TimePeriod
    current_value: float = 0.0
    is_active: bool = True


@dataclass(frozen=True)
class GoalProgress:
    """Completion of a goal.

    ``raw_progress_percent`` is unclamped; ``display_progress_percent`` is
    capped at 100 for progress bars.
    """

    goal: GoalDefinition
    current_value: float
    raw_progress_percent: float
    display_progress_percent: float
    is_completed: bool
