"""Achievement criteria evaluation."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cb_lens.domain.context import UserContext
from cb_lens.domain.engagement import Achievement, ActivitySnapshot

_logger = logging.getLogger(__name__)


class AchievementRepository(Protocol):
    """Persistence interface for achievements."""

    def list_active_achievements(self) -> list[Achievement]:
        """Return all active achievements."""

    def list_earned_ids(self, user_id: UUID) -> set[UUID]:
        """Return ids of achievements the user already holds."""

    def award(self, user_id: UUID, achievement_id: UUID) -> None:
        """Record an earned achievement."""

    def count_meal_ratings(self, user_id: UUID) -> int:
        """Return how many meal ratings the user has left."""


def evaluate_achievements(
    achievements: list[Achievement],
    earned_ids: set[UUID],
    activity: ActivitySnapshot,
) -> list[Achievement]:
    """Return unearned achievements with at least one satisfied criterion."""
    return [
        achievement
        for achievement in achievements
        if achievement.id not in earned_ids
        and _meets_any(achievement.criteria, activity)
    ]


def _meets_any(criteria: dict[str, int], activity: ActivitySnapshot) -> bool:
    checks = (
        ("scans_count", activity.scan_count),
        ("consecutive_days", activity.daily_streak),
        ("meal_feedbacks", activity.feedback_count),
        ("unique_dishes", activity.unique_dishes),
    )
    for key, value in checks:
        threshold = criteria.get(key)
        if threshold and value >= threshold:
            return True
    return False


@dataclass
class AchievementService:
    """Awards achievements whose criteria a user has reached."""

    repository: AchievementRepository

    def check(
        self, context: UserContext, activity: ActivitySnapshot
    ) -> list[Achievement]:
        """Award and return newly earned achievements."""
        earned_ids = self.repository.list_earned_ids(context.user_id)
        awarded = evaluate_achievements(
            self.repository.list_active_achievements(), earned_ids, activity
        )
        for achievement in awarded:
            self.repository.award(context.user_id, achievement.id)
            _logger.info(
                "Awarded achievement: %s to user: %s", achievement.name, context.user_id
            )
        return awarded

    def count_meal_ratings(self, context: UserContext) -> int:
        """Return the user's meal rating count."""
        return self.repository.count_meal_ratings(context.user_id)
