"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from cb_lens.adapters.detection_client import HttpxDetectionClient
from cb_lens.adapters.supabase_achievement_repository import (
    SupabaseAchievementRepository,
)
from cb_lens.adapters.supabase_goal_repository import SupabaseGoalRepository
from cb_lens.adapters.supabase_insight_repository import SupabaseInsightRepository
from cb_lens.adapters.supabase_scan_repository import SupabaseScanRepository
from cb_lens.adapters.supabase_streak_repository import SupabaseStreakRepository
from cb_lens.config import Settings, parse_week_start
from cb_lens.services.achievements import AchievementService
from cb_lens.services.detection import DetectionService
from cb_lens.services.engagement import EngagementService
from cb_lens.services.goals import GoalService
from cb_lens.services.insights import InsightService
from cb_lens.services.reports import ReportService
from cb_lens.services.scans import ScanService
from cb_lens.services.stats import StatsService
from cb_lens.services.streaks import StreakService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    scan_service: ScanService
    detection_service: DetectionService
    stats_service: StatsService
    goal_service: GoalService
    streak_service: StreakService
    insight_service: InsightService
    achievement_service: AchievementService
    engagement_service: EngagementService
    report_service: ReportService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    week_start = parse_week_start(resolved_settings.week_start)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    scan_repository = SupabaseScanRepository(supabase_client)
    goal_repository = SupabaseGoalRepository(supabase_client)
    streak_repository = SupabaseStreakRepository(supabase_client)
    insight_repository = SupabaseInsightRepository(supabase_client)
    achievement_repository = SupabaseAchievementRepository(supabase_client)

    detection_client = HttpxDetectionClient.create(
        function_url=resolved_settings.resolved_detection_url(),
        api_key=resolved_settings.supabase_service_key,
    )
    stats_service = StatsService(scan_repository, week_start=week_start)
    streak_service = StreakService(streak_repository)
    insight_service = InsightService(
        repository=insight_repository,
        stats_service=stats_service,
        thresholds=resolved_settings.insight_thresholds(),
    )
    achievement_service = AchievementService(achievement_repository)

    async def close_resources() -> None:
        await detection_client.close()

    return AppContainer(
        settings=resolved_settings,
        scan_service=ScanService(scan_repository),
        detection_service=DetectionService(detection_client),
        stats_service=stats_service,
        goal_service=GoalService(goal_repository, stats_service),
        streak_service=streak_service,
        insight_service=insight_service,
        achievement_service=achievement_service,
        engagement_service=EngagementService(
            scan_repository=scan_repository,
            streak_service=streak_service,
            achievement_service=achievement_service,
            insight_service=insight_service,
        ),
        report_service=ReportService(
            scan_repository, goal_repository, week_start=week_start
        ),
        close_resources=close_resources,
    )
