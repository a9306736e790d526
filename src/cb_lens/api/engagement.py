"""Engagement, insight and report endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from cb_lens.api.dependencies import get_container, get_user_context
from cb_lens.domain.context import UserContext  # noqa: TC001

router = APIRouter(tags=["engagement"])


@router.post("/engagement/process")
async def process_engagement(
    request: Request, context: UserContext = Depends(get_user_context)
) -> dict[str, object]:
    """Advance streaks, award achievements and publish insights."""
    result = get_container(request).engagement_service.process(context)
    streak = result.streak
    return {
        "streak": (
            {
                "current_count": streak.current_count,
                "best_count": streak.best_count,
                "last_activity_date": streak.last_activity_date.isoformat(),
            }
            if streak
            else None
        ),
        "awarded": [
            {
                "id": str(achievement.id),
                "name": achievement.name,
                "points": achievement.points,
            }
            for achievement in result.awarded
        ],
        "insights": [
            {
                "insight_type": insight.insight_type.value,
                "title": insight.title,
                "description": insight.description,
                "severity": insight.severity.value,
            }
            for insight in result.insights
        ],
    }


@router.get("/insights")
async def list_insights(
    request: Request,
    limit: int = Query(default=10, ge=1, le=100),
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return stored insights, newest first."""
    insights = get_container(request).insight_service.list_recent(context, limit)
    return {"insights": insights}


@router.get("/insights/projection")
async def trend_projection(
    request: Request, context: UserContext = Depends(get_user_context)
) -> dict[str, object]:
    """Return the weekly projection, or null without enough tracked days."""
    projection = get_container(request).insight_service.projection(context)
    if projection is None:
        return {"projection": None}
    return {
        "projection": {
            "weekly_calories": projection.weekly_calories,
            "weekly_protein": projection.weekly_protein,
            "trend": projection.trend,
            "recommendations": projection.recommendations,
        }
    }


@router.get("/reports/analytics")
async def analytics_report(
    request: Request,
    days: int = Query(default=7, ge=1, le=366),
    context: UserContext = Depends(get_user_context),
) -> dict[str, object]:
    """Return the analytics report for the last ``days`` days."""
    return get_container(request).report_service.build_report(context, days)


@router.get("/reports/scans.csv")
async def scans_csv(
    request: Request,
    days: int | None = Query(default=None, ge=1),
    context: UserContext = Depends(get_user_context),
) -> Response:
    """Download scan history as CSV."""
    content = get_container(request).report_service.export_csv(context, days)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="scan-history.csv"'},
    )
