"""Domain models for streaks, insights and achievements."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID

DAILY_TRACKING = "daily_tracking"


@dataclass(frozen=True)
class StreakCounter:
    """Consecutive-day activity counter with a best-ever high-water mark."""

    user_id: UUID
    streak_type: str
    current_count: int
    best_count: int
    last_activity_date: date


class InsightType(str, Enum):
    """Kind of generated insight."""

    DEFICIENCY = "deficiency"
    MODERATION = "moderation"
    TREND = "trend"
    PREDICTION = "prediction"


class Severity(str, Enum):
    """How prominently an insight should be shown."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Insight:
    """Rule-derived observation about recent eating."""

    insight_type: InsightType
    title: str
    description: str
    severity: Severity
    data: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class InsightThresholds:
    """Rule thresholds for insights and trend projection."""

    min_avg_protein_g: float = 100
    min_avg_calories: float = 1500
    max_avg_calories: float = 2500
    consistency_days: int = 5
    trend_high_calories: float = 2200
    trend_low_calories: float = 1800
    target_protein_g: float = 150
    target_calories: float = 2000
    min_days_for_projection: int = 3


@dataclass(frozen=True)
class TrendProjection:
    """Weekly projection from recent daily averages."""

    weekly_calories: int
    weekly_protein: int
    trend: str
    recommendations: list[str]


@dataclass(frozen=True)
class Achievement:
    """Badge awarded when any of its criteria is met."""

    id: UUID
    name: str
    description: str
    category: str
    points: int
    criteria: dict[str, int]


@dataclass(frozen=True)
class ActivitySnapshot:
    """Counts that achievement criteria are checked against."""

    scan_count: int
    unique_dishes: int
    feedback_count: int
    daily_streak: int
