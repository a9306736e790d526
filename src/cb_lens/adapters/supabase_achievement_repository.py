"""Supabase repository for achievements and meal ratings."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from cb_lens.domain.engagement import Achievement
from cb_lens.services.achievements import AchievementRepository


@dataclass
class SupabaseAchievementRepository(AchievementRepository):
    """Supabase implementation for achievements."""

    client: Client

    def list_active_achievements(self) -> list[Achievement]:
        """Return all active achievements."""
        response = (
            self.client.table("achievements")
            .select("id, name, description, category, points, criteria")
            .eq("is_active", True)
            .execute()
        )
        return [_parse_achievement(row) for row in response.data or []]

    def list_earned_ids(self, user_id: UUID) -> set[UUID]:
        """Return achievement ids already awarded to the user."""
        response = (
            self.client.table("user_achievements")
            .select("achievement_id")
            .eq("user_id", str(user_id))
            .execute()
        )
        return {UUID(str(row["achievement_id"])) for row in response.data or []}

    def award(self, user_id: UUID, achievement_id: UUID) -> None:
        """Record an earned achievement."""
        (
            self.client.table("user_achievements")
            .insert({"user_id": str(user_id), "achievement_id": str(achievement_id)})
            .execute()
        )

    def count_meal_ratings(self, user_id: UUID) -> int:
        """Return how many meal ratings the user has left."""
        response = (
            self.client.table("meal_ratings")
            .select("id")
            .eq("user_id", str(user_id))
            .execute()
        )
        return len(response.data or [])


def _parse_achievement(row: dict[str, object]) -> Achievement:
    raw_criteria = row.get("criteria")
    criteria: dict[str, int] = {}
    if isinstance(raw_criteria, dict):
        for key, value in raw_criteria.items():
            if isinstance(value, int | float):
                criteria[str(key)] = int(value)
    return Achievement(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        description=str(row.get("description") or ""),
        category=str(row.get("category") or ""),
        points=int(row.get("points") or 0),
        criteria=criteria,
    )
