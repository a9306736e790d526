"""Explicit caller context."""

from dataclasses import dataclass
from uuid import UUID
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class UserContext:
    """Identifies the acting user and their local calendar."""

    user_id: UUID
    timezone_name: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)
