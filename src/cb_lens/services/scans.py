"""Scan construction and persistence."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from pydantic import ValidationError

from cb_lens.domain.context import UserContext
from cb_lens.domain.errors import MissingCandidateError
from cb_lens.domain.nutrition import ConfidenceTier, NutrientProfile, PortionPreset
from cb_lens.domain.scans import DishCandidate, DishInfo, ScanFilter, ScanRecord
from cb_lens.services.nutrition import round_half_up, scale

HIGH_CONFIDENCE_ABOVE = 0.8
MEDIUM_CONFIDENCE_ABOVE = 0.6

_logger = logging.getLogger(__name__)


class ScanRepository(Protocol):
    """Persistence interface for scans and the dish catalog."""

    def list_scans(self, scan_filter: ScanFilter) -> list[ScanRecord]:
        """Return scans matching the filter, oldest first."""

    def insert_scan(self, record: ScanRecord) -> UUID:
        """Persist a scan and return its id."""

    def update_notes(self, scan_id: UUID, user_id: UUID, notes: str | None) -> None:
        """Replace the notes of a user's scan."""

    def get_dish_profile(self, dish_id: str) -> NutrientProfile | None:
        """Return catalog nutrition for a dish, if known."""

    def get_dishes(self, dish_ids: list[str]) -> dict[str, DishInfo]:
        """Return catalog names and categories by dish id."""


def resolve_confidence_tier(score: float) -> ConfidenceTier:
    """Map a detection score to a tier; lower bounds are exclusive."""
    if score > HIGH_CONFIDENCE_ABOVE:
        return ConfidenceTier.HIGH
    if score > MEDIUM_CONFIDENCE_ABOVE:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def parse_alternatives(raw: object) -> list[DishCandidate]:
    """Validate a stored alternatives blob, dropping malformed entries."""
    if not isinstance(raw, list):
        return []
    candidates: list[DishCandidate] = []
    for entry in raw:
        if isinstance(entry, DishCandidate):
            candidates.append(entry)
            continue
        try:
            candidates.append(DishCandidate.model_validate(entry))
        except ValidationError as exc:
            _logger.warning(
                "Dropping malformed dish candidate: %s", exc.errors()[0]["msg"]
            )
    return candidates


def build_scan_record(  # noqa: PLR0913
    candidate: DishCandidate | None,
    preset: PortionPreset | str,
    estimated_grams: float,
    location: str,
    notes: str | None = None,
    alternatives: list[DishCandidate] | None = None,
    *,
    context: UserContext,
    timestamp: datetime | None = None,
) -> ScanRecord:
    """Assemble a scan for the selected candidate and portion."""
    if candidate is None:
        raise MissingCandidateError("A dish candidate must be selected")
    scaled = scale(candidate.nutrients_per_100g, estimated_grams, preset)
    return ScanRecord(
        id=uuid4(),
        user_id=context.user_id,
        dish_id=candidate.id,
        confidence=resolve_confidence_tier(candidate.confidence_score),
        portion_preset=PortionPreset(preset),
        estimated_grams=round_half_up(scaled.effective_grams),
        scaled_calories=scaled.calories,
        scaled_protein=scaled.protein,
        scaled_carbs=scaled.carbs,
        scaled_fat=scaled.fat,
        canteen_location=location,
        timestamp=timestamp or datetime.now(tz=UTC),
        notes=notes,
        alternatives=[alt for alt in alternatives or [] if alt.id != candidate.id],
    )


@dataclass
class ScanService:
    """Builds scans against catalog nutrition and stores them."""

    repository: ScanRepository

    def save_scan(  # noqa: PLR0913
        self,
        context: UserContext,
        candidate: DishCandidate | None,
        preset: PortionPreset | str,
        estimated_grams: float,
        location: str,
        notes: str | None = None,
        alternatives: list[DishCandidate] | None = None,
    ) -> ScanRecord:
        """Build a scan, preferring catalog nutrition, and persist it."""
        if candidate is not None:
            profile = self.repository.get_dish_profile(candidate.id)
            if profile is not None:
                candidate = candidate.model_copy(update={"nutrients_per_100g": profile})
        record = build_scan_record(
            candidate,
            preset,
            estimated_grams,
            location,
            notes,
            alternatives,
            context=context,
        )
        self.repository.insert_scan(record)
        _logger.info(
            "Scan saved: user=%s dish=%s kcal=%s",
            context.user_id,
            record.dish_id,
            record.scaled_calories,
        )
        return record

    def update_notes(
        self, context: UserContext, scan_id: UUID, notes: str | None
    ) -> None:
        """Replace a scan's notes, the only mutable field."""
        self.repository.update_notes(scan_id, context.user_id, notes)

    def list_scans(
        self,
        context: UserContext,
        start: datetime | None = None,
        end: datetime | None = None,
        location: str | None = None,
    ) -> list[ScanRecord]:
        """Return the user's scans within an optional UTC range."""
        return self.repository.list_scans(
            ScanFilter(user_id=context.user_id, start=start, end=end, location=location)
        )
