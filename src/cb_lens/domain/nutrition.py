"""Nutrition domain models."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PortionPreset(str, Enum):
    """Coarse portion size selected by the user."""

    HALF = "half"
    NORMAL = "normal"
    LARGE = "large"


class ConfidenceTier(str, Enum):
    """Coarse bucket for a detection score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NutrientProfile(BaseModel):
    """Per-100g reference nutrition for a dish."""

    model_config = ConfigDict(frozen=True)

    calories_per_100g: float = Field(default=0.0, ge=0.0)
    protein_per_100g: float = Field(default=0.0, ge=0.0)
    carbs_per_100g: float = Field(default=0.0, ge=0.0)
    fat_per_100g: float = Field(default=0.0, ge=0.0)


@dataclass(frozen=True)
class ScaledNutrition:
    """Absolute nutrient amounts for an eaten portion."""

    calories: int
    protein: int
    carbs: int
    fat: int
    effective_grams: float


@dataclass(frozen=True)
class MacroShare:
    """Calories contributed by one macro and its share of the total."""

    macro: str
    calories: float
    percentage: int
