"""Consecutive-day streak tracking."""

from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from uuid import UUID

from cb_lens.domain.context import UserContext
from cb_lens.domain.engagement import DAILY_TRACKING, StreakCounter


class StreakRepository(Protocol):
    """Persistence interface for streak counters."""

    def get_streak(self, user_id: UUID, streak_type: str) -> StreakCounter | None:
        """Return the user's streak of a type, if present."""

    def upsert_streak(self, streak: StreakCounter) -> None:
        """Create or replace a streak counter."""


def start_streak(
    user_id: UUID, activity_date: date, streak_type: str = DAILY_TRACKING
) -> StreakCounter:
    """Return a fresh streak for a first activity."""
    return StreakCounter(
        user_id=user_id,
        streak_type=streak_type,
        current_count=1,
        best_count=1,
        last_activity_date=activity_date,
    )


def update_streak(counter: StreakCounter, activity_date: date) -> StreakCounter:
    """Apply an activity day to a streak.

    The next calendar day continues the streak, a gap of two or more days
    restarts it at 1, and the same or an earlier day leaves the count alone.
    """
    gap = (activity_date - counter.last_activity_date).days
    if gap <= 0:
        current = counter.current_count
        last_activity = counter.last_activity_date
    else:
        current = counter.current_count + 1 if gap == 1 else 1
        last_activity = activity_date
    return replace(
        counter,
        current_count=current,
        best_count=max(counter.best_count, current),
        last_activity_date=last_activity,
    )


@dataclass
class StreakService:
    """Service for reading and advancing streaks."""

    repository: StreakRepository

    def get(
        self, context: UserContext, streak_type: str = DAILY_TRACKING
    ) -> StreakCounter | None:
        """Return the user's streak, if any."""
        return self.repository.get_streak(context.user_id, streak_type)

    def record_activity(
        self,
        context: UserContext,
        activity_date: date,
        streak_type: str = DAILY_TRACKING,
    ) -> StreakCounter:
        """Advance a streak for an activity day and persist changes."""
        existing = self.repository.get_streak(context.user_id, streak_type)
        if existing is None:
            updated = start_streak(context.user_id, activity_date, streak_type)
        else:
            updated = update_streak(existing, activity_date)
        if updated != existing:
            self.repository.upsert_streak(updated)
        return updated
