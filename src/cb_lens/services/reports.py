"""Analytics report and scan history exports."""

import csv
import io
import json
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from cb_lens.domain.context import UserContext
from cb_lens.domain.goals import GoalType, TimePeriod
from cb_lens.domain.nutrition import ConfidenceTier, PortionPreset
from cb_lens.domain.scans import DishInfo, ScanFilter, ScanRecord
from cb_lens.domain.stats import Bucket, Granularity, PeriodSummary
from cb_lens.services.goals import GoalRepository, evaluate
from cb_lens.services.nutrition import round_half_up
from cb_lens.services.scans import ScanRepository
from cb_lens.services.stats import SUNDAY, aggregate, local_bounds_to_utc, summarize

TOP_DISHES_LIMIT = 5
CONFIDENCE_POINTS = {
    ConfidenceTier.HIGH: 3,
    ConfidenceTier.MEDIUM: 2,
    ConfidenceTier.LOW: 1,
}
# Three confidence points map onto roughly 100%.
PERCENT_PER_CONFIDENCE_POINT = 33.33
UNKNOWN_DISH = DishInfo(id="", name="Unknown Dish", category="Unknown Category")

PORTION_LABELS = {
    PortionPreset.HALF: "½× Portion",
    PortionPreset.NORMAL: "1× Portion",
    PortionPreset.LARGE: "1.5× Portion",
}
CSV_HEADERS = [
    "Date",
    "Dish",
    "Category",
    "Confidence",
    "Portion",
    "Weight (g)",
    "Calories",
    "Protein (g)",
    "Carbs (g)",
    "Fat (g)",
    "Location",
    "Notes",
]


@dataclass
class ReportService:
    """Builds the analytics report consumed by export tooling."""

    scan_repository: ScanRepository
    goal_repository: GoalRepository
    week_start: int = SUNDAY

    def build_report(
        self, context: UserContext, days: int = 7, now: datetime | None = None
    ) -> dict[str, object]:
        """Return the analytics report for the last ``days`` local days."""
        tz = context.tz
        local_now = (now or datetime.now(tz=tz)).astimezone(tz)
        window_end = local_now.date() + timedelta(days=1)
        window_start = window_end - timedelta(days=days)
        scans = self._scans_in_window(context, window_start, window_end)
        buckets = aggregate(
            scans,
            Granularity.DAILY,
            window_start,
            window_end,
            tz=tz,
            week_start=self.week_start,
        )
        summary = summarize(buckets, window_start, window_end)
        dishes = self.scan_repository.get_dishes(sorted({s.dish_id for s in scans}))

        return {
            "reportDate": local_now.strftime("%Y-%m-%d %H:%M:%S"),
            "dateRange": f"Last {days} days",
            "summary": {
                "totalScans": len(scans),
                "averageConfidence": f"{_average_confidence(scans):.1f}%",
                "averagePortionSize": f"{_average_portion(scans)}g",
                "totalCalories": round_half_up(summary.total_calories),
                "avgDailyCalories": round_half_up(summary.avg_daily_calories),
                "calorieGoalProgress": self._goal_progress(
                    context, GoalType.CALORIES, summary.avg_daily_calories
                ),
                "proteinGoalProgress": self._goal_progress(
                    context, GoalType.PROTEIN, summary.avg_daily_protein
                ),
            },
            "macroDistribution": _macro_rows(summary),
            "topDishes": _top_dishes(scans, dishes),
            "confidenceDistribution": _confidence_rows(scans),
            "locationBreakdown": _location_rows(scans),
            "dailyScans": [
                {"date": _short_date(bucket.period_start), "count": bucket.meal_count}
                for bucket in buckets
            ],
            "dailyNutrition": [_bucket_row(bucket) for bucket in buckets],
        }

    def export_csv(self, context: UserContext, days: int | None = None) -> str:
        """Return the user's scan history as CSV, newest first."""
        scan_filter = ScanFilter(user_id=context.user_id)
        if days is not None:
            window_end = datetime.now(tz=context.tz).date() + timedelta(days=1)
            start, end = local_bounds_to_utc(
                window_end - timedelta(days=days), window_end, context.tz
            )
            scan_filter = ScanFilter(user_id=context.user_id, start=start, end=end)
        scans = self.scan_repository.list_scans(scan_filter)
        dishes = self.scan_repository.get_dishes(sorted({s.dish_id for s in scans}))
        return export_scans_csv(scans, dishes, context.tz)

    def _scans_in_window(
        self, context: UserContext, window_start: date, window_end: date
    ) -> list[ScanRecord]:
        start, end = local_bounds_to_utc(window_start, window_end, context.tz)
        scans = self.scan_repository.list_scans(
            ScanFilter(user_id=context.user_id, start=start, end=end)
        )
        return [
            scan
            for scan in scans
            if window_start <= scan.timestamp.astimezone(context.tz).date() < window_end
        ]

    def _goal_progress(
        self, context: UserContext, goal_type: GoalType, avg_daily: float
    ) -> str | None:
        goal = self.goal_repository.get_goal(context.user_id, goal_type)
        if goal is None:
            return None
        value = avg_daily * 7 if goal.time_period is TimePeriod.WEEKLY else avg_daily
        progress = evaluate(goal, value)
        return f"{round_half_up(progress.display_progress_percent)}%"


def export_json(report: dict[str, object]) -> str:
    """Serialize a report the way downstream consumers expect."""
    return json.dumps(report, indent=2, ensure_ascii=False)


def export_scans_csv(
    scans: list[ScanRecord], dishes: dict[str, DishInfo], tz: ZoneInfo
) -> str:
    """Render scans as CSV with every value quoted."""
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=CSV_HEADERS, quoting=csv.QUOTE_ALL, lineterminator="\n"
    )
    writer.writeheader()
    for scan in sorted(scans, key=lambda item: item.timestamp, reverse=True):
        dish = dishes.get(scan.dish_id, UNKNOWN_DISH)
        writer.writerow(
            {
                "Date": scan.timestamp.astimezone(tz).strftime("%Y-%m-%d %H:%M"),
                "Dish": dish.name,
                "Category": dish.category,
                "Confidence": scan.confidence.value,
                "Portion": PORTION_LABELS[scan.portion_preset],
                "Weight (g)": _plain_number(scan.estimated_grams),
                "Calories": scan.scaled_calories,
                "Protein (g)": scan.scaled_protein,
                "Carbs (g)": scan.scaled_carbs,
                "Fat (g)": scan.scaled_fat,
                "Location": scan.canteen_location,
                "Notes": scan.notes or "",
            }
        )
    return buffer.getvalue()


def _average_confidence(scans: list[ScanRecord]) -> float:
    if not scans:
        return 0.0
    points = sum(CONFIDENCE_POINTS[scan.confidence] for scan in scans)
    return points / len(scans) * PERCENT_PER_CONFIDENCE_POINT


def _average_portion(scans: list[ScanRecord]) -> int:
    if not scans:
        return 0
    return round_half_up(sum(scan.estimated_grams for scan in scans) / len(scans))


def _top_dishes(
    scans: list[ScanRecord], dishes: dict[str, DishInfo]
) -> list[dict[str, object]]:
    counts: Counter[str] = Counter()
    categories: dict[str, str] = {}
    for scan in scans:
        dish = dishes.get(scan.dish_id, UNKNOWN_DISH)
        counts[dish.name] += 1
        categories.setdefault(dish.name, dish.category)
    return [
        {"name": name, "count": count, "category": categories[name]}
        for name, count in counts.most_common(TOP_DISHES_LIMIT)
    ]


def _confidence_rows(scans: list[ScanRecord]) -> list[dict[str, object]]:
    counts = Counter(scan.confidence for scan in scans)
    total = len(scans)
    return [
        {
            "confidence": tier.value.capitalize(),
            "count": counts[tier],
            "percentage": round_half_up(counts[tier] / total * 100) if total else 0,
        }
        for tier in ConfidenceTier
    ]


def _location_rows(scans: list[ScanRecord]) -> list[dict[str, object]]:
    counts = Counter(scan.canteen_location for scan in scans)
    return [
        {"location": location, "count": count}
        for location, count in counts.most_common()
    ]


def _macro_rows(summary: PeriodSummary) -> list[dict[str, object]]:
    return [
        {
            "macro": share.macro,
            "calories": round_half_up(share.calories),
            "percentage": share.percentage,
        }
        for share in summary.macro_distribution
    ]


def _bucket_row(bucket: Bucket) -> dict[str, object]:
    return {
        "date": bucket.period_label,
        "totalCalories": round_half_up(bucket.total_calories),
        "totalProtein": round_half_up(bucket.total_protein),
        "totalCarbs": round_half_up(bucket.total_carbs),
        "totalFat": round_half_up(bucket.total_fat),
        "mealCount": bucket.meal_count,
    }


def _short_date(day: date) -> str:
    return f"{day:%b} {day.day}"


def _plain_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
