"""Supabase repository for user goals."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from cb_lens.domain.goals import GoalDefinition, GoalType, TimePeriod
from cb_lens.services.goals import GoalRepository

_GOAL_COLUMNS = (
    "id, user_id, goal_type, target_value, current_value, time_period, is_active"
)


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation for goals."""

    client: Client

    def get_goal(self, user_id: UUID, goal_type: GoalType) -> GoalDefinition | None:
        """Return the user's active goal of a type."""
        response = (
            self.client.table("user_goals")
            .select(_GOAL_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("goal_type", goal_type.value)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def list_active_goals(self, user_id: UUID) -> list[GoalDefinition]:
        """Return all active goals for a user."""
        response = (
            self.client.table("user_goals")
            .select(_GOAL_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .execute()
        )
        return [_parse_goal(row) for row in response.data or []]

    def create_goal(
        self,
        user_id: UUID,
        goal_type: GoalType,
        target_value: float,
        time_period: TimePeriod,
    ) -> GoalDefinition:
        """Create a goal row and return it."""
        response = (
            self.client.table("user_goals")
            .insert(
                {
                    "user_id": str(user_id),
                    "goal_type": goal_type.value,
                    "target_value": target_value,
                    "current_value": 0,
                    "time_period": time_period.value,
                    "is_active": True,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create goal")
        return _parse_goal(response.data[0])

    def update_current_value(self, goal_id: UUID, value: float) -> None:
        """Store a goal's current value."""
        (
            self.client.table("user_goals")
            .update({"current_value": value})
            .eq("id", str(goal_id))
            .execute()
        )

    def deactivate_goal(self, user_id: UUID, goal_id: UUID) -> None:
        """Mark one of the user's goals inactive."""
        (
            self.client.table("user_goals")
            .update({"is_active": False})
            .eq("id", str(goal_id))
            .eq("user_id", str(user_id))
            .execute()
        )


def _parse_goal(row: dict[str, object]) -> GoalDefinition:
    return GoalDefinition(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        goal_type=GoalType(row["goal_type"]),
        target_value=float(row.get("target_value") or 0.0),
        time_period=TimePeriod(row.get("time_period") or TimePeriod.DAILY.value),
        current_value=float(row.get("current_value") or 0.0),
        is_active=bool(row.get("is_active", True)),
    )
