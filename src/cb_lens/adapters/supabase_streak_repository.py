"""Supabase repository for nutrition streaks."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from cb_lens.domain.engagement import StreakCounter
from cb_lens.services.streaks import StreakRepository


@dataclass
class SupabaseStreakRepository(StreakRepository):
    """Supabase implementation for streak counters."""

    client: Client

    def get_streak(self, user_id: UUID, streak_type: str) -> StreakCounter | None:
        """Return a user's streak of a type."""
        response = (
            self.client.table("nutrition_streaks")
            .select(
                "user_id, streak_type, current_count, best_count, last_activity_date"
            )
            .eq("user_id", str(user_id))
            .eq("streak_type", streak_type)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return StreakCounter(
            user_id=UUID(str(row["user_id"])),
            streak_type=str(row["streak_type"]),
            current_count=int(row.get("current_count") or 0),
            best_count=int(row.get("best_count") or 0),
            last_activity_date=date.fromisoformat(str(row["last_activity_date"])),
        )

    def upsert_streak(self, streak: StreakCounter) -> None:
        """Create or replace a streak row keyed by user and type."""
        (
            self.client.table("nutrition_streaks")
            .upsert(
                {
                    "user_id": str(streak.user_id),
                    "streak_type": streak.streak_type,
                    "current_count": streak.current_count,
                    "best_count": streak.best_count,
                    "last_activity_date": streak.last_activity_date.isoformat(),
                },
                on_conflict="user_id,streak_type",
            )
            .execute()
        )
