"""Post-scan engagement processing."""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from cb_lens.domain.context import UserContext
from cb_lens.domain.engagement import (
    Achievement,
    ActivitySnapshot,
    Insight,
    StreakCounter,
)
from cb_lens.domain.scans import ScanFilter
from cb_lens.services.achievements import AchievementService
from cb_lens.services.insights import InsightService
from cb_lens.services.scans import ScanRepository
from cb_lens.services.streaks import StreakService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngagementResult:
    """Outcome of processing a user's engagement."""

    streak: StreakCounter | None
    awarded: list[Achievement]
    insights: list[Insight]


@dataclass
class EngagementService:
    """Updates streaks, awards achievements and publishes insights."""

    scan_repository: ScanRepository
    streak_service: StreakService
    achievement_service: AchievementService
    insight_service: InsightService

    def process(
        self,
        context: UserContext,
        today: date | None = None,
        now: datetime | None = None,
    ) -> EngagementResult:
        """Run engagement rules for a user after new activity."""
        tz = context.tz
        local_today = today or datetime.now(tz=tz).date()
        scans = self.scan_repository.list_scans(ScanFilter(user_id=context.user_id))

        streak = self.streak_service.get(context)
        if any(scan.timestamp.astimezone(tz).date() == local_today for scan in scans):
            streak = self.streak_service.record_activity(context, local_today)

        activity = ActivitySnapshot(
            scan_count=len(scans),
            unique_dishes=len({scan.dish_id for scan in scans}),
            feedback_count=self.achievement_service.count_meal_ratings(context),
            daily_streak=streak.current_count if streak else 0,
        )
        awarded = self.achievement_service.check(context, activity)

        insights = self.insight_service.generate(context, local_today)
        self.insight_service.publish(context, insights, now)
        _logger.info(
            "Engagement processed: user=%s streak=%s awarded=%s insights=%s",
            context.user_id,
            activity.daily_streak,
            len(awarded),
            len(insights),
        )
        return EngagementResult(streak=streak, awarded=awarded, insights=insights)
