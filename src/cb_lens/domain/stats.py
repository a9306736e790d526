"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from cb_lens.domain.nutrition import MacroShare


class Granularity(str, Enum):
    """Bucket size for aggregation."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Bucket:
    """Nutrient totals for one half-open period ``[period_start, period_end)``."""

    period_label: str
    period_start: date
    period_end: date
    total_calories: float = 0
    total_protein: float = 0
    total_carbs: float = 0
    total_fat: float = 0
    meal_count: int = 0

    @property
    def avg_calories_per_meal(self) -> float:
        return _per_meal(self.total_calories, self.meal_count)

    @property
    def avg_protein_per_meal(self) -> float:
        return _per_meal(self.total_protein, self.meal_count)

    @property
    def avg_carbs_per_meal(self) -> float:
        return _per_meal(self.total_carbs, self.meal_count)

    @property
    def avg_fat_per_meal(self) -> float:
        return _per_meal(self.total_fat, self.meal_count)


@dataclass(frozen=True)
class PeriodSummary:
    """Buckets for a window plus totals and per-day averages."""

    buckets: list[Bucket]
    days: int
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    meal_count: int
    avg_daily_calories: float
    avg_daily_protein: float
    avg_daily_carbs: float
    avg_daily_fat: float
    macro_distribution: list[MacroShare]


def _per_meal(total: float, meal_count: int) -> float:
    if meal_count == 0:
        return 0.0
    return total / meal_count
