"""Supabase repository for scans and the dish catalog."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from cb_lens.domain.nutrition import ConfidenceTier, NutrientProfile, PortionPreset
from cb_lens.domain.scans import DishInfo, ScanFilter, ScanRecord
from cb_lens.services.nutrition import round_half_up
from cb_lens.services.scans import ScanRepository, parse_alternatives

_logger = logging.getLogger(__name__)

_SCAN_COLUMNS = (
    "id, user_id, kanpla_item_id, confidence, portion_preset, estimated_grams, "
    "scaled_calories, scaled_protein, scaled_carbs, scaled_fat, "
    "canteen_location, scan_timestamp, notes, alternatives"
)


@dataclass
class SupabaseScanRepository(ScanRepository):
    """Supabase implementation for scans."""

    client: Client

    def list_scans(self, scan_filter: ScanFilter) -> list[ScanRecord]:
        """Return scans matching the filter, oldest first."""
        query = self.client.table("scans").select(_SCAN_COLUMNS)
        if scan_filter.user_id is not None:
            query = query.eq("user_id", str(scan_filter.user_id))
        if scan_filter.start is not None:
            query = query.gte("scan_timestamp", scan_filter.start.isoformat())
        if scan_filter.end is not None:
            query = query.lt("scan_timestamp", scan_filter.end.isoformat())
        if scan_filter.location is not None:
            query = query.eq("canteen_location", scan_filter.location)
        if scan_filter.confidence is not None:
            query = query.eq("confidence", scan_filter.confidence.value)
        response = query.order("scan_timestamp", desc=False).execute()
        scans: list[ScanRecord] = []
        for row in response.data or []:
            timestamp = _parse_timestamp(row.get("scan_timestamp"))
            if timestamp is None:
                _logger.warning("Skipping scan %s without a timestamp", row.get("id"))
                continue
            scans.append(_parse_scan(row, timestamp))
        return scans

    def insert_scan(self, record: ScanRecord) -> UUID:
        """Create a scan row and return its id."""
        response = (
            self.client.table("scans")
            .insert(
                {
                    "id": str(record.id),
                    "user_id": str(record.user_id),
                    "kanpla_item_id": record.dish_id,
                    "confidence": record.confidence.value,
                    "portion_preset": record.portion_preset.value,
                    "estimated_grams": record.estimated_grams,
                    "scaled_calories": record.scaled_calories,
                    "scaled_protein": record.scaled_protein,
                    "scaled_carbs": record.scaled_carbs,
                    "scaled_fat": record.scaled_fat,
                    "canteen_location": record.canteen_location,
                    "scan_timestamp": record.timestamp.isoformat(),
                    "notes": record.notes,
                    "alternatives": [
                        alternative.model_dump(mode="json")
                        for alternative in record.alternatives
                    ],
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create scan")
        return UUID(str(response.data[0]["id"]))

    def update_notes(self, scan_id: UUID, user_id: UUID, notes: str | None) -> None:
        """Replace the notes of a user's scan."""
        (
            self.client.table("scans")
            .update({"notes": notes})
            .eq("id", str(scan_id))
            .eq("user_id", str(user_id))
            .execute()
        )

    def get_dish_profile(self, dish_id: str) -> NutrientProfile | None:
        """Return catalog nutrition for a dish."""
        response = (
            self.client.table("kanpla_items")
            .select("calories_per_100g, protein_per_100g, carbs_per_100g, fat_per_100g")
            .eq("id", dish_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return NutrientProfile(
            calories_per_100g=float(row.get("calories_per_100g") or 0.0),
            protein_per_100g=float(row.get("protein_per_100g") or 0.0),
            carbs_per_100g=float(row.get("carbs_per_100g") or 0.0),
            fat_per_100g=float(row.get("fat_per_100g") or 0.0),
        )

    def get_dishes(self, dish_ids: list[str]) -> dict[str, DishInfo]:
        """Return catalog names and categories keyed by dish id."""
        if not dish_ids:
            return {}
        response = (
            self.client.table("kanpla_items")
            .select("id, name, category")
            .in_("id", dish_ids)
            .execute()
        )
        dishes: dict[str, DishInfo] = {}
        for row in response.data or []:
            dish_id = str(row["id"])
            dishes[dish_id] = DishInfo(
                id=dish_id,
                name=str(row.get("name") or "Unknown Dish"),
                category=str(row.get("category") or "Unknown Category"),
            )
        return dishes


def _parse_scan(row: dict[str, object], timestamp: datetime) -> ScanRecord:
    return ScanRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        dish_id=str(row.get("kanpla_item_id", "")),
        confidence=ConfidenceTier(row.get("confidence", ConfidenceTier.LOW.value)),
        portion_preset=PortionPreset(
            row.get("portion_preset", PortionPreset.NORMAL.value)
        ),
        estimated_grams=float(row.get("estimated_grams") or 0.0),
        scaled_calories=_stored_amount(row.get("scaled_calories")),
        scaled_protein=_stored_amount(row.get("scaled_protein")),
        scaled_carbs=_stored_amount(row.get("scaled_carbs")),
        scaled_fat=_stored_amount(row.get("scaled_fat")),
        canteen_location=str(row.get("canteen_location") or ""),
        timestamp=timestamp,
        notes=row.get("notes"),
        alternatives=parse_alternatives(row.get("alternatives")),
    )


def _stored_amount(raw: object) -> int:
    return round_half_up(float(raw or 0.0))


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        parsed = datetime.fromisoformat(raw)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed
    return None
