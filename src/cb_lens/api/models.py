"""Pydantic models for API request bodies."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from cb_lens.domain.goals import GoalType, TimePeriod
from cb_lens.domain.nutrition import PortionPreset
from cb_lens.domain.scans import DishCandidate


class DetectRequest(BaseModel):
    """Plate photo sent for dish detection."""

    image_base64: str = Field(min_length=1)
    canteen_location: str
    menu_date: date | None = None


class SaveScanRequest(BaseModel):
    """Selected candidate and portion for a new scan."""

    candidate: DishCandidate | None = None
    portion_preset: PortionPreset = PortionPreset.NORMAL
    estimated_grams: float
    canteen_location: str
    notes: str | None = None
    alternatives: list[dict[str, Any]] = Field(default_factory=list)


class NotesRequest(BaseModel):
    """Replacement notes for a scan."""

    notes: str | None = None


class CreateGoalRequest(BaseModel):
    """New goal target."""

    goal_type: GoalType
    target_value: float
    time_period: TimePeriod = TimePeriod.DAILY


class GoalProgressRequest(BaseModel):
    """Manually reported goal value."""

    value: float = Field(ge=0)
