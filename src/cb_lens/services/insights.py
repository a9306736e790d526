"""Rule-based nutrition insights and trend projection."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID

from cb_lens.domain.context import UserContext
from cb_lens.domain.engagement import (
    Insight,
    InsightThresholds,
    InsightType,
    Severity,
    TrendProjection,
)
from cb_lens.domain.stats import Bucket
from cb_lens.services.nutrition import round_half_up
from cb_lens.services.stats import StatsService

PROJECTION_DAYS = 7
INSIGHT_WINDOW_DAYS = 7
TREND_WINDOW_DAYS = 14


class InsightRepository(Protocol):
    """Persistence interface for generated insights."""

    def insert_insight(
        self, user_id: UUID, insight: Insight, expires_at: datetime
    ) -> None:
        """Store an insight until it expires."""

    def list_insights(self, user_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return the user's most recent insights."""


def generate_insights(
    recent_buckets: list[Bucket], thresholds: InsightThresholds
) -> list[Insight]:
    """Evaluate threshold rules against daily buckets.

    Averages are taken over tracked days only; without any tracked day no
    insight is produced.
    """
    tracked = [bucket for bucket in recent_buckets if bucket.meal_count > 0]
    if not tracked:
        return []
    avg_calories = sum(bucket.total_calories for bucket in tracked) / len(tracked)
    avg_protein = sum(bucket.total_protein for bucket in tracked) / len(tracked)

    insights: list[Insight] = []
    if avg_protein < thresholds.min_avg_protein_g:
        insights.append(
            Insight(
                insight_type=InsightType.DEFICIENCY,
                title="Low Protein Intake",
                description=(
                    f"Your average protein intake is {round_half_up(avg_protein)}g "
                    "per day. Consider adding more protein-rich foods."
                ),
                severity=Severity.WARNING,
                data={
                    "avg_protein": avg_protein,
                    "target": thresholds.target_protein_g,
                },
            )
        )
    if avg_calories < thresholds.min_avg_calories:
        insights.append(
            Insight(
                insight_type=InsightType.DEFICIENCY,
                title="Low Calorie Intake",
                description=(
                    f"Your average daily calories ({round_half_up(avg_calories)}) "
                    "might be too low. Ensure you're meeting your energy needs."
                ),
                severity=Severity.WARNING,
                data={
                    "avg_calories": avg_calories,
                    "target": thresholds.target_calories,
                },
            )
        )
    if avg_calories > thresholds.max_avg_calories:
        insights.append(
            Insight(
                insight_type=InsightType.MODERATION,
                title="High Calorie Intake",
                description=(
                    f"Your average daily calories ({round_half_up(avg_calories)}) "
                    "are above your usual range. Monitor portion sizes to maintain "
                    "a balanced calorie intake."
                ),
                severity=Severity.WARNING,
                data={
                    "avg_calories": avg_calories,
                    "limit": thresholds.max_avg_calories,
                },
            )
        )
    consecutive = consecutive_tracked_days(recent_buckets)
    if consecutive >= thresholds.consistency_days:
        meals = sum(bucket.meal_count for bucket in tracked)
        insights.append(
            Insight(
                insight_type=InsightType.TREND,
                title="Great Tracking Consistency!",
                description=(
                    f"You've tracked meals {consecutive} days in a row. "
                    "Keep up the excellent habit!"
                ),
                severity=Severity.INFO,
                data={"consecutive_days": consecutive, "meals_tracked": meals},
            )
        )
    return insights


def consecutive_tracked_days(buckets: list[Bucket]) -> int:
    """Return the longest run of adjacent tracked buckets."""
    best = 0
    run = 0
    previous: Bucket | None = None
    for bucket in sorted(buckets, key=lambda item: item.period_start):
        if bucket.meal_count == 0:
            run = 0
        elif run and previous is not None and _adjacent(previous, bucket):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = bucket
    return best


def _adjacent(previous: Bucket, bucket: Bucket) -> bool:
    return previous.period_end == bucket.period_start


def project_trend(
    recent_buckets: list[Bucket], thresholds: InsightThresholds
) -> TrendProjection | None:
    """Project the coming week from the last tracked days."""
    tracked = [bucket for bucket in recent_buckets if bucket.meal_count > 0]
    if len(tracked) < thresholds.min_days_for_projection:
        return None
    recent = tracked[-PROJECTION_DAYS:]
    avg_calories = sum(bucket.total_calories for bucket in recent) / len(recent)
    avg_protein = sum(bucket.total_protein for bucket in recent) / len(recent)

    if avg_calories > thresholds.trend_high_calories:
        trend = "increasing"
    elif avg_calories < thresholds.trend_low_calories:
        trend = "decreasing"
    else:
        trend = "stable"

    recommendations = []
    if avg_protein < thresholds.min_avg_protein_g:
        recommendations.append("Consider adding more protein-rich foods to your meals")
    if avg_calories < thresholds.min_avg_calories:
        recommendations.append(
            "Your calorie intake seems low - ensure you're meeting your energy needs"
        )
    if avg_calories > thresholds.max_avg_calories:
        recommendations.append(
            "Monitor portion sizes to maintain a balanced calorie intake"
        )
    return TrendProjection(
        weekly_calories=round_half_up(avg_calories * 7),
        weekly_protein=round_half_up(avg_protein * 7),
        trend=trend,
        recommendations=recommendations,
    )


@dataclass
class InsightService:
    """Generates, stores and projects insights for a user."""

    repository: InsightRepository
    stats_service: StatsService
    thresholds: InsightThresholds = field(default_factory=InsightThresholds)
    ttl_days: int = 7

    def generate(
        self, context: UserContext, today: date | None = None
    ) -> list[Insight]:
        """Return insights for the last week without storing them."""
        summary = self.stats_service.get_recent_days(
            context, INSIGHT_WINDOW_DAYS, today
        )
        return generate_insights(summary.buckets, self.thresholds)

    def publish(
        self,
        context: UserContext,
        insights: list[Insight],
        now: datetime | None = None,
    ) -> None:
        """Store insights with an expiry."""
        expires_at = (now or datetime.now(tz=UTC)) + timedelta(days=self.ttl_days)
        for insight in insights:
            self.repository.insert_insight(context.user_id, insight, expires_at)

    def projection(
        self, context: UserContext, today: date | None = None
    ) -> TrendProjection | None:
        """Return the weekly projection from the last two weeks."""
        summary = self.stats_service.get_recent_days(context, TREND_WINDOW_DAYS, today)
        return project_trend(summary.buckets, self.thresholds)

    def list_recent(
        self, context: UserContext, limit: int = 10
    ) -> list[dict[str, object]]:
        """Return stored insights, newest first."""
        return self.repository.list_insights(context.user_id, limit)
