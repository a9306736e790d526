"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from cb_lens.adapters.detection_client import DetectionClient
from cb_lens.config import Settings
from cb_lens.containers import AppContainer
from cb_lens.domain.context import UserContext
from cb_lens.domain.engagement import Achievement, Insight, StreakCounter
from cb_lens.domain.goals import GoalDefinition, GoalType, TimePeriod
from cb_lens.domain.nutrition import ConfidenceTier, NutrientProfile, PortionPreset
from cb_lens.domain.scans import DishCandidate, DishInfo, ScanFilter, ScanRecord
from cb_lens.services.achievements import AchievementRepository, AchievementService
from cb_lens.services.detection import DetectionService
from cb_lens.services.engagement import EngagementService
from cb_lens.services.goals import GoalRepository, GoalService
from cb_lens.services.insights import InsightRepository, InsightService
from cb_lens.services.reports import ReportService
from cb_lens.services.scans import ScanRepository, ScanService
from cb_lens.services.stats import StatsService
from cb_lens.services.streaks import StreakRepository, StreakService

USER_ID = UUID("00000000-0000-4000-8000-000000000001")


def make_candidate(  # noqa: PLR0913
    dish_id: str = "dish-1",
    name: str = "Chicken Curry",
    score: float = 0.85,
    calories: float = 200,
    protein: float = 20,
    carbs: float = 25,
    fat: float = 8,
    category: str = "Main",
) -> DishCandidate:
    """Build a detection candidate with per-100g nutrition."""
    return DishCandidate(
        id=dish_id,
        name=name,
        category=category,
        nutrients_per_100g=NutrientProfile(
            calories_per_100g=calories,
            protein_per_100g=protein,
            carbs_per_100g=carbs,
            fat_per_100g=fat,
        ),
        confidence_score=score,
    )


def make_scan(  # noqa: PLR0913
    timestamp: datetime,
    calories: int = 500,
    protein: int = 50,
    carbs: int = 60,
    fat: int = 20,
    dish_id: str = "dish-1",
    user_id: UUID = USER_ID,
    confidence: ConfidenceTier = ConfidenceTier.HIGH,
    preset: PortionPreset = PortionPreset.NORMAL,
    grams: float = 250,
    location: str = "HQ Canteen",
    notes: str | None = None,
) -> ScanRecord:
    """Build a stored scan with fixed scaled values."""
    return ScanRecord(
        id=uuid4(),
        user_id=user_id,
        dish_id=dish_id,
        confidence=confidence,
        portion_preset=preset,
        estimated_grams=grams,
        scaled_calories=calories,
        scaled_protein=protein,
        scaled_carbs=carbs,
        scaled_fat=fat,
        canteen_location=location,
        timestamp=timestamp,
        notes=notes,
    )


def at(day: date, hour: int = 12) -> datetime:
    """Return a UTC instant on a day."""
    return datetime(day.year, day.month, day.day, hour, tzinfo=UTC)


@dataclass
class InMemoryScanRepository(ScanRepository):
    """In-memory scan repository for tests."""

    scans: list[ScanRecord] = field(default_factory=list)
    profiles: dict[str, NutrientProfile] = field(default_factory=dict)
    dishes: dict[str, DishInfo] = field(default_factory=dict)
    filters: list[ScanFilter] = field(default_factory=list)

    def list_scans(self, scan_filter: ScanFilter) -> list[ScanRecord]:
        self.filters.append(scan_filter)
        results = [
            scan
            for scan in self.scans
            if (scan_filter.user_id is None or scan.user_id == scan_filter.user_id)
            and (scan_filter.start is None or scan.timestamp >= scan_filter.start)
            and (scan_filter.end is None or scan.timestamp < scan_filter.end)
            and (
                scan_filter.location is None
                or scan.canteen_location == scan_filter.location
            )
            and (
                scan_filter.confidence is None
                or scan.confidence == scan_filter.confidence
            )
        ]
        return sorted(results, key=lambda scan: scan.timestamp)

    def insert_scan(self, record: ScanRecord) -> UUID:
        self.scans.append(record)
        return record.id

    def update_notes(self, scan_id: UUID, user_id: UUID, notes: str | None) -> None:
        self.scans = [
            replace(scan, notes=notes)
            if scan.id == scan_id and scan.user_id == user_id
            else scan
            for scan in self.scans
        ]

    def get_dish_profile(self, dish_id: str) -> NutrientProfile | None:
        return self.profiles.get(dish_id)

    def get_dishes(self, dish_ids: list[str]) -> dict[str, DishInfo]:
        return {
            dish_id: self.dishes[dish_id]
            for dish_id in dish_ids
            if dish_id in self.dishes
        }


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory goal repository for tests."""

    goals: dict[UUID, GoalDefinition] = field(default_factory=dict)
    updates: list[tuple[UUID, float]] = field(default_factory=list)

    def get_goal(self, user_id: UUID, goal_type: GoalType) -> GoalDefinition | None:
        for goal in self.goals.values():
            if (
                goal.user_id == user_id
                and goal.goal_type is goal_type
                and goal.is_active
            ):
                return goal
        return None

    def list_active_goals(self, user_id: UUID) -> list[GoalDefinition]:
        return [
            goal
            for goal in self.goals.values()
            if goal.user_id == user_id and goal.is_active
        ]

    def create_goal(
        self,
        user_id: UUID,
        goal_type: GoalType,
        target_value: float,
        time_period: TimePeriod,
    ) -> GoalDefinition:
        goal = GoalDefinition(
            id=uuid4(),
            user_id=user_id,
            goal_type=goal_type,
            target_value=target_value,
            time_period=time_period,
        )
        self.goals[goal.id] = goal
        return goal

    def update_current_value(self, goal_id: UUID, value: float) -> None:
        self.updates.append((goal_id, value))
        self.goals[goal_id] = replace(self.goals[goal_id], current_value=value)

    def deactivate_goal(self, user_id: UUID, goal_id: UUID) -> None:
        goal = self.goals.get(goal_id)
        if goal is not None and goal.user_id == user_id:
            self.goals[goal_id] = replace(goal, is_active=False)


@dataclass
class InMemoryStreakRepository(StreakRepository):
    """In-memory streak repository for tests."""

    streaks: dict[tuple[UUID, str], StreakCounter] = field(default_factory=dict)
    upserts: int = 0

    def get_streak(self, user_id: UUID, streak_type: str) -> StreakCounter | None:
        return self.streaks.get((user_id, streak_type))

    def upsert_streak(self, streak: StreakCounter) -> None:
        self.upserts += 1
        self.streaks[(streak.user_id, streak.streak_type)] = streak


@dataclass
class InMemoryInsightRepository(InsightRepository):
    """In-memory insight repository for tests."""

    stored: list[tuple[UUID, Insight, datetime]] = field(default_factory=list)

    def insert_insight(
        self, user_id: UUID, insight: Insight, expires_at: datetime
    ) -> None:
        self.stored.append((user_id, insight, expires_at))

    def list_insights(self, user_id: UUID, limit: int) -> list[dict[str, object]]:
        rows = [
            {"title": insight.title, "severity": insight.severity.value}
            for owner, insight, _ in reversed(self.stored)
            if owner == user_id
        ]
        return rows[:limit]


@dataclass
class InMemoryAchievementRepository(AchievementRepository):
    """In-memory achievement repository for tests."""

    achievements: list[Achievement] = field(default_factory=list)
    earned: dict[UUID, set[UUID]] = field(default_factory=dict)
    ratings: dict[UUID, int] = field(default_factory=dict)

    def list_active_achievements(self) -> list[Achievement]:
        return list(self.achievements)

    def list_earned_ids(self, user_id: UUID) -> set[UUID]:
        return set(self.earned.get(user_id, set()))

    def award(self, user_id: UUID, achievement_id: UUID) -> None:
        self.earned.setdefault(user_id, set()).add(achievement_id)

    def count_meal_ratings(self, user_id: UUID) -> int:
        return self.ratings.get(user_id, 0)


@dataclass
class FakeDetectionClient(DetectionClient):
    """Fake detection client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "matches": [
                {
                    "id": "dish-2",
                    "name": "Veggie Lasagna",
                    "category": "Vegetarian",
                    "calories_per_100g": 150,
                    "protein_per_100g": 7,
                    "carbs_per_100g": 18,
                    "fat_per_100g": 6,
                    "score": 0.65,
                },
                {
                    "id": "dish-1",
                    "name": "Chicken Curry",
                    "category": "Main",
                    "calories_per_100g": 200,
                    "protein_per_100g": 20,
                    "carbs_per_100g": 25,
                    "fat_per_100g": 8,
                    "score": 0.9,
                },
            ],
            "processingTime": 412,
        }
    )
    calls: list[tuple[str, str, date]] = field(default_factory=list)

    async def detect(
        self, image_base64: str, canteen_location: str, menu_date: date
    ) -> dict[str, object]:
        self.calls.append((image_base64, canteen_location, menu_date))
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def context() -> UserContext:
    return UserContext(user_id=USER_ID, timezone_name="UTC")


@pytest.fixture
def scan_repository() -> InMemoryScanRepository:
    return InMemoryScanRepository()


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def streak_repository() -> InMemoryStreakRepository:
    return InMemoryStreakRepository()


@pytest.fixture
def insight_repository() -> InMemoryInsightRepository:
    return InMemoryInsightRepository()


@pytest.fixture
def achievement_repository() -> InMemoryAchievementRepository:
    return InMemoryAchievementRepository()


@pytest.fixture
def detection_client() -> FakeDetectionClient:
    return FakeDetectionClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    scan_repository: InMemoryScanRepository,
    goal_repository: InMemoryGoalRepository,
    streak_repository: InMemoryStreakRepository,
    insight_repository: InMemoryInsightRepository,
    achievement_repository: InMemoryAchievementRepository,
    detection_client: FakeDetectionClient,
) -> AppContainer:
    stats_service = StatsService(scan_repository)
    streak_service = StreakService(streak_repository)
    insight_service = InsightService(
        repository=insight_repository,
        stats_service=stats_service,
        thresholds=settings.insight_thresholds(),
    )
    achievement_service = AchievementService(achievement_repository)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        scan_service=ScanService(scan_repository),
        detection_service=DetectionService(detection_client, retry_delay_seconds=0),
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
        report_service=ReportService(scan_repository, goal_repository),
        close_resources=close_resources,
    )
