"""Stats and goal endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status

from cb_lens.api.dependencies import get_container, get_user_context
from cb_lens.api.models import CreateGoalRequest, GoalProgressRequest
from cb_lens.domain.context import UserContext  # noqa: TC001
from cb_lens.domain.goals import GoalType  # noqa: TC001
from cb_lens.domain.stats import Granularity  # noqa: TC001

if TYPE_CHECKING:
    from cb_lens.domain.goals import GoalDefinition, GoalProgress
    from cb_lens.domain.stats import Bucket, PeriodSummary

router = APIRouter(tags=["progress"])


@router.get("/stats/{granularity}")
async def get_stats(
    granularity: Granularity,
    start: date,
    end: date,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return zero-filled buckets and totals for ``[start, end)``."""
    summary = get_container(request).stats_service.get_range(
        context, start, end, granularity
    )
    return summary_payload(summary)


@router.get("/goals/progress")
async def goal_progress(
    request: Request, context: UserContext = Depends(get_user_context)
) -> dict[str, object]:
    """Recompute active goals from scans and return their progress."""
    progress = get_container(request).goal_service.refresh(context)
    return {"goals": [progress_payload(entry) for entry in progress]}


@router.post("/goals")
async def create_goal(
    body: CreateGoalRequest,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Create a goal for the caller."""
    goal = get_container(request).goal_service.create_goal(
        context, body.goal_type, body.target_value, body.time_period
    )
    return goal_payload(goal)


@router.put("/goals/{goal_type}/progress")
async def record_goal_progress(
    goal_type: GoalType,
    body: GoalProgressRequest,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Store a manually reported value for a goal."""
    progress = get_container(request).goal_service.record_progress(
        context, goal_type, body.value
    )
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active {goal_type.value} goal",
        )
    return progress_payload(progress)


@router.delete("/goals/{goal_id}")
async def deactivate_goal(
    goal_id: UUID,
    request: Request,
    context: UserContext = Depends(get_user_context),
) -> dict[str, str]:
    """Deactivate one of the caller's goals."""
    get_container(request).goal_service.deactivate_goal(context, goal_id)
    return {"status": "ok"}


def summary_payload(summary: PeriodSummary) -> dict[str, object]:
    """Serialize a period summary."""
    return {
        "days": summary.days,
        "total_calories": summary.total_calories,
        "total_protein": summary.total_protein,
        "total_carbs": summary.total_carbs,
        "total_fat": summary.total_fat,
        "meal_count": summary.meal_count,
        "avg_daily_calories": summary.avg_daily_calories,
        "avg_daily_protein": summary.avg_daily_protein,
        "avg_daily_carbs": summary.avg_daily_carbs,
        "avg_daily_fat": summary.avg_daily_fat,
        "macro_distribution": [
            {
                "macro": share.macro,
                "calories": share.calories,
                "percentage": share.percentage,
            }
            for share in summary.macro_distribution
        ],
        "buckets": [_bucket_payload(bucket) for bucket in summary.buckets],
    }


def _bucket_payload(bucket: Bucket) -> dict[str, object]:
    return {
        "period_label": bucket.period_label,
        "period_start": bucket.period_start.isoformat(),
        "period_end": bucket.period_end.isoformat(),
        "total_calories": bucket.total_calories,
        "total_protein": bucket.total_protein,
        "total_carbs": bucket.total_carbs,
        "total_fat": bucket.total_fat,
        "meal_count": bucket.meal_count,
        "avg_calories_per_meal": bucket.avg_calories_per_meal,
    }


def goal_payload(goal: GoalDefinition) -> dict[str, object]:
    """Serialize a goal definition."""
    return {
        "id": str(goal.id),
        "goal_type": goal.goal_type.value,
        "target_value": goal.target_value,
        "time_period": goal.time_period.value,
        "current_value": goal.current_value,
        "is_active": goal.is_active,
    }


def progress_payload(progress: GoalProgress) -> dict[str, object]:
    """Serialize goal progress."""
    return {
        "goal": goal_payload(progress.goal),
        "current_value": progress.current_value,
        "raw_progress_percent": progress.raw_progress_percent,
        "display_progress_percent": progress.display_progress_percent,
        "is_completed": progress.is_completed,
    }
