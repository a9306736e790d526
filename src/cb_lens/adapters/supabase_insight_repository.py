"""Supabase repository for generated insights."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from cb_lens.domain.engagement import Insight
from cb_lens.services.insights import InsightRepository


@dataclass
class SupabaseInsightRepository(InsightRepository):
    """Supabase implementation for insights."""

    client: Client

    def insert_insight(
        self, user_id: UUID, insight: Insight, expires_at: datetime
    ) -> None:
        """Store an insight row."""
        (
            self.client.table("nutrition_insights")
            .insert(
                {
                    "user_id": str(user_id),
                    "insight_type": insight.insight_type.value,
                    "title": insight.title,
                    "description": insight.description,
                    "severity": insight.severity.value,
                    "data": insight.data,
                    "expires_at": expires_at.isoformat(),
                }
            )
            .execute()
        )

    def list_insights(self, user_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return recent insight rows, newest first."""
        response = (
            self.client.table("nutrition_insights")
            .select("id, insight_type, title, description, severity, data, created_at")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return list(response.data or [])
