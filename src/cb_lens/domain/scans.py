"""Domain models for meal scans."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cb_lens.domain.nutrition import ConfidenceTier, NutrientProfile, PortionPreset

_FLAT_NUTRIENT_KEYS = (
    "calories_per_100g",
    "protein_per_100g",
    "carbs_per_100g",
    "fat_per_100g",
)

# Representative scores for matches that carry only a confidence tier.
TIER_SCORES = {
    "high": 0.9,
    "medium": 0.7,
    "low": 0.5,
}


class DishCandidate(BaseModel):
    """Single ranked dish match returned by detection."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    category: str = "Unknown Category"
    nutrients_per_100g: NutrientProfile
    confidence_score: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_nutrients(cls, data: Any) -> Any:
        """Accept catalog rows with top-level per-100g values or a tier string."""
        if not isinstance(data, dict):
            return data
        lifted = dict(data)
        if "confidence_score" not in lifted and "score" in lifted:
            lifted["confidence_score"] = lifted.pop("score")
        tier = lifted.get("confidence")
        if isinstance(tier, str) and tier in TIER_SCORES:
            lifted.setdefault("confidence_score", TIER_SCORES[tier])
        if "nutrients_per_100g" not in lifted and any(
            key in lifted for key in _FLAT_NUTRIENT_KEYS
        ):
            lifted["nutrients_per_100g"] = {
                key: lifted.pop(key) or 0.0
                for key in _FLAT_NUTRIENT_KEYS
                if key in lifted
            }
        return lifted


@dataclass(frozen=True)
class ScanRecord:
    """Persisted meal scan with scaled nutrients.

    ``estimated_grams`` holds the weight after the portion multiplier.
    """

    id: UUID
    user_id: UUID
    dish_id: str
    confidence: ConfidenceTier
    portion_preset: PortionPreset
    estimated_grams: float
    scaled_calories: int
    scaled_protein: int
    scaled_carbs: int
    scaled_fat: int
    canteen_location: str
    timestamp: datetime
    notes: str | None = None
    alternatives: list[DishCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class ScanFilter:
    """Filter for fetching scans from the record store."""

    user_id: UUID | None = None
    start: datetime | None = None
    end: datetime | None = None
    location: str | None = None
    confidence: ConfidenceTier | None = None


@dataclass(frozen=True)
class DishInfo:
    """Catalog name and category for a dish id."""

    id: str
    name: str
    category: str


@dataclass(frozen=True)
class DetectionResult:
    """Ranked candidates for a photographed plate."""

    candidates: list[DishCandidate]
    menu_date: date
    processing_time_ms: int | None = None
