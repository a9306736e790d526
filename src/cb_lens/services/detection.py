"""Dish detection via the upstream classifier."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date

from cb_lens.adapters.detection_client import DetectionClient
from cb_lens.domain.scans import DetectionResult
from cb_lens.services.scans import parse_alternatives

_logger = logging.getLogger(__name__)


@dataclass
class DetectionService:
    """Calls detection and validates the candidates it returns."""

    client: DetectionClient
    max_candidates: int = 3
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def detect(
        self, image_base64: str, canteen_location: str, menu_date: date
    ) -> DetectionResult:
        """Return valid candidates ranked by confidence score."""
        payload = await self._call_with_retry(
            image_base64, canteen_location, menu_date
        )
        candidates = parse_alternatives(payload.get("matches"))
        ranked = sorted(
            candidates, key=lambda candidate: candidate.confidence_score, reverse=True
        )
        processing_time = payload.get("processingTime")
        if not isinstance(processing_time, int | float):
            processing_time = None
        return DetectionResult(
            candidates=ranked[: self.max_candidates],
            menu_date=menu_date,
            processing_time_ms=(
                int(processing_time) if processing_time is not None else None
            ),
        )

    async def _call_with_retry(
        self, image_base64: str, canteen_location: str, menu_date: date
    ) -> dict[str, object]:
        """Call detection with a short retry."""
        attempt = 0
        while True:
            try:
                return await self.client.detect(
                    image_base64, canteen_location, menu_date
                )
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Detection failed (attempt %s/%s, status=%s): %s",
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
