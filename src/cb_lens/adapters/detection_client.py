"""Client for the hosted dish-detection function."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

import httpx


class DetectionClient(Protocol):
    """Interface for dish detection calls."""

    async def detect(
        self, image_base64: str, canteen_location: str, menu_date: date
    ) -> dict[str, object]:
        """Return raw detection data for a plate photo."""


@dataclass
class HttpxDetectionClient(DetectionClient):
    """HTTPX-backed client for the Supabase edge function."""

    function_url: str
    api_key: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, function_url: str, api_key: str) -> "HttpxDetectionClient":
        """Create a detection client with a managed httpx session."""
        return cls(
            function_url=function_url,
            api_key=api_key,
            http_client=httpx.AsyncClient(),
        )

    async def detect(
        self, image_base64: str, canteen_location: str, menu_date: date
    ) -> dict[str, object]:
        """Post a photo and return the ranked matches payload."""
        response = await self.http_client.post(
            self.function_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "apikey": self.api_key,
            },
            json={
                "imageBase64": image_base64,
                "canteenLocation": canteen_location,
                "date": menu_date.isoformat(),
            },
            timeout=30,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
