"""Scan endpoints: detection, saving and notes."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request

from cb_lens.api.dependencies import get_container, get_user_context
from cb_lens.api.models import DetectRequest, NotesRequest, SaveScanRequest
from cb_lens.domain.context import UserContext  # noqa: TC001
from cb_lens.services.scans import parse_alternatives

if TYPE_CHECKING:
    from cb_lens.domain.scans import ScanRecord

router = APIRouter(prefix="/scans", tags=["scans"])


@router.post("/detect")
async def detect_dishes(
    body: DetectRequest,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return ranked dish candidates for a plate photo."""
    menu_date = body.menu_date or datetime.now(tz=context.tz).date()
    result = await get_container(request).detection_service.detect(
        body.image_base64, body.canteen_location, menu_date
    )
    return {
        "candidates": [
            candidate.model_dump(mode="json") for candidate in result.candidates
        ],
        "menu_date": result.menu_date.isoformat(),
        "processing_time_ms": result.processing_time_ms,
    }


@router.post("")
async def save_scan(
    body: SaveScanRequest,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Save a scan for the selected candidate."""
    record = get_container(request).scan_service.save_scan(
        context,
        body.candidate,
        body.portion_preset,
        body.estimated_grams,
        body.canteen_location,
        body.notes,
        parse_alternatives(body.alternatives),
    )
    return scan_payload(record)


@router.get("")
async def list_scans(
    request: Request,
    start: datetime | None = None,
    end: datetime | None = None,
    location: str | None = None,
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return the caller's scans, oldest first."""
    records = get_container(request).scan_service.list_scans(
        context, start, end, location
    )
    return {"scans": [scan_payload(record) for record in records]}


@router.patch("/{scan_id}/notes")
async def update_notes(
    scan_id: UUID,
    body: NotesRequest,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, str]:
    """Replace a scan's notes."""
    get_container(request).scan_service.update_notes(context, scan_id, body.notes)
    return {"status": "ok"}


def scan_payload(record: ScanRecord) -> dict[str, object]:
    """Serialize a scan for API responses."""
    return {
        "id": str(record.id),
        "dish_id": record.dish_id,
        "confidence": record.confidence.value,
        "portion_preset": record.portion_preset.value,
        "estimated_grams": record.estimated_grams,
        "scaled_calories": record.scaled_calories,
        "scaled_protein": record.scaled_protein,
        "scaled_carbs": record.scaled_carbs,
        "scaled_fat": record.scaled_fat,
        "canteen_location": record.canteen_location,
        "timestamp": record.timestamp.isoformat(),
        "notes": record.notes,
        "alternatives": [
            alternative.model_dump(mode="json") for alternative in record.alternatives
        ],
    }
