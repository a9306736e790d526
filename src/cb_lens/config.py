"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from cb_lens.domain.engagement import InsightThresholds
from cb_lens.services.stats import SUNDAY, WEEKDAYS

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    detection_function_url: str | None = None
    default_timezone: str = "UTC"
    week_start: str = "sunday"
    insight_min_protein_g: float = 100
    insight_min_calories: float = 1500
    insight_max_calories: float = 2500
    insight_consistency_days: int = 5
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def resolved_detection_url(self) -> str:
        """Return the detection endpoint, defaulting to the edge function."""
        if self.detection_function_url:
            return self.detection_function_url
        return f"{self.supabase_url.rstrip('/')}/functions/v1/dish-detection"

    def insight_thresholds(self) -> InsightThresholds:
        """Build insight thresholds from settings."""
        return InsightThresholds(
            min_avg_protein_g=self.insight_min_protein_g,
            min_avg_calories=self.insight_min_calories,
            max_avg_calories=self.insight_max_calories,
            consistency_days=self.insight_consistency_days,
        )


def parse_week_start(raw: str | None) -> int:
    """Parse a weekday name into a weekday number, Sunday if unset."""
    if raw is None:
        return SUNDAY
    cleaned = raw.strip().lower()
    if not cleaned:
        return SUNDAY
    if cleaned not in WEEKDAYS:
        raise ValueError(f"Unknown week start day: {raw}")
    return WEEKDAYS[cleaned]
