"""Time-bucketed aggregation of scans."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from cb_lens.domain.context import UserContext
from cb_lens.domain.errors import InvalidWindowError
from cb_lens.domain.scans import ScanFilter, ScanRecord
from cb_lens.domain.stats import Bucket, Granularity, PeriodSummary
from cb_lens.services.nutrition import macro_distribution
from cb_lens.services.scans import ScanRepository

DECEMBER = 12
SUNDAY = 6
WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": SUNDAY,
}


@dataclass
class _Accumulator:
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    meals: int = 0

    def add(self, record: ScanRecord) -> None:
        self.calories += record.scaled_calories
        self.protein += record.scaled_protein
        self.carbs += record.scaled_carbs
        self.fat += record.scaled_fat
        self.meals += 1


def aggregate(  # noqa: PLR0913
    records: list[ScanRecord],
    granularity: Granularity | str,
    window_start: date,
    window_end: date,
    *,
    tz: ZoneInfo,
    week_start: int = SUNDAY,
) -> list[Bucket]:
    """Group scans into zero-filled buckets covering ``[window_start, window_end)``.

    Records are placed by their local calendar date in ``tz``. Weekly buckets
    begin on ``week_start`` (0=Monday .. 6=Sunday), so the first one may start
    before ``window_start``; only records inside the window are counted.
    """
    if window_start >= window_end:
        raise InvalidWindowError(
            f"Window start {window_start} must be before end {window_end}"
        )
    resolved = Granularity(granularity)
    periods = _periods(resolved, window_start, window_end, week_start)
    totals = {start: _Accumulator() for start, _ in periods}
    for record in records:
        local_day = record.timestamp.astimezone(tz).date()
        if not window_start <= local_day < window_end:
            continue
        totals[_period_start(resolved, local_day, week_start)].add(record)

    return [
        Bucket(
            period_label=_label(resolved, start),
            period_start=start,
            period_end=end,
            total_calories=totals[start].calories,
            total_protein=totals[start].protein,
            total_carbs=totals[start].carbs,
            total_fat=totals[start].fat,
            meal_count=totals[start].meals,
        )
        for start, end in periods
    ]


def summarize(
    buckets: list[Bucket], window_start: date, window_end: date
) -> PeriodSummary:
    """Total a window's buckets and average them per calendar day."""
    days = max((window_end - window_start).days, 0)
    total_calories = sum(bucket.total_calories for bucket in buckets)
    total_protein = sum(bucket.total_protein for bucket in buckets)
    total_carbs = sum(bucket.total_carbs for bucket in buckets)
    total_fat = sum(bucket.total_fat for bucket in buckets)
    return PeriodSummary(
        buckets=buckets,
        days=days,
        total_calories=total_calories,
        total_protein=total_protein,
        total_carbs=total_carbs,
        total_fat=total_fat,
        meal_count=sum(bucket.meal_count for bucket in buckets),
        avg_daily_calories=_per_day(total_calories, days),
        avg_daily_protein=_per_day(total_protein, days),
        avg_daily_carbs=_per_day(total_carbs, days),
        avg_daily_fat=_per_day(total_fat, days),
        macro_distribution=macro_distribution(total_protein, total_carbs, total_fat),
    )


def local_bounds_to_utc(
    window_start: date, window_end: date, tz: ZoneInfo
) -> tuple[datetime, datetime]:
    """Return UTC instants for local midnight at both window edges."""
    start = datetime.combine(window_start, time.min, tzinfo=tz)
    end = datetime.combine(window_end, time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def week_start_of(day: date, week_start: int = SUNDAY) -> date:
    """Return the week-start day on or before ``day``."""
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def next_month(day: date) -> date:
    """Return the first day of the month after ``day``."""
    if day.month == DECEMBER:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


@dataclass
class StatsService:
    """Aggregates a user's scans over local-calendar windows."""

    repository: ScanRepository
    week_start: int = SUNDAY

    def get_range(
        self,
        context: UserContext,
        window_start: date,
        window_end: date,
        granularity: Granularity | str = Granularity.DAILY,
    ) -> PeriodSummary:
        """Return buckets and totals for an explicit local window."""
        if window_start >= window_end:
            raise InvalidWindowError(
                f"Window start {window_start} must be before end {window_end}"
            )
        tz = context.tz
        start_utc, end_utc = local_bounds_to_utc(window_start, window_end, tz)
        records = self.repository.list_scans(
            ScanFilter(user_id=context.user_id, start=start_utc, end=end_utc)
        )
        buckets = aggregate(
            records,
            granularity,
            window_start,
            window_end,
            tz=tz,
            week_start=self.week_start,
        )
        return summarize(buckets, window_start, window_end)

    def get_today(self, context: UserContext, today: date | None = None) -> Bucket:
        """Return today's totals in the user's timezone."""
        day = today or _local_today(context)
        summary = self.get_range(context, day, day + timedelta(days=1))
        return summary.buckets[0]

    def get_week(
        self, context: UserContext, today: date | None = None
    ) -> PeriodSummary:
        """Return daily buckets for the current week."""
        start = week_start_of(today or _local_today(context), self.week_start)
        return self.get_range(context, start, start + timedelta(days=7))

    def get_month(
        self, context: UserContext, today: date | None = None
    ) -> PeriodSummary:
        """Return daily buckets for the current month."""
        start = (today or _local_today(context)).replace(day=1)
        return self.get_range(context, start, next_month(start))

    def get_recent_days(
        self, context: UserContext, days: int, today: date | None = None
    ) -> PeriodSummary:
        """Return daily buckets for the last ``days`` days including today."""
        end = (today or _local_today(context)) + timedelta(days=1)
        return self.get_range(context, end - timedelta(days=days), end)


def _periods(
    granularity: Granularity, window_start: date, window_end: date, week_start: int
) -> list[tuple[date, date]]:
    periods: list[tuple[date, date]] = []
    start = _period_start(granularity, window_start, week_start)
    while start < window_end:
        end = _period_end(granularity, start)
        periods.append((start, end))
        start = end
    return periods


def _period_start(granularity: Granularity, day: date, week_start: int) -> date:
    if granularity is Granularity.WEEKLY:
        return week_start_of(day, week_start)
    if granularity is Granularity.MONTHLY:
        return day.replace(day=1)
    return day


def _period_end(granularity: Granularity, start: date) -> date:
    if granularity is Granularity.WEEKLY:
        return start + timedelta(days=7)
    if granularity is Granularity.MONTHLY:
        return next_month(start)
    return start + timedelta(days=1)


def _label(granularity: Granularity, start: date) -> str:
    if granularity is Granularity.MONTHLY:
        return start.strftime("%Y-%m")
    return start.isoformat()


def _per_day(total: float, days: int) -> float:
    if days == 0:
        return 0.0
    return total / days


def _local_today(context: UserContext) -> date:
    return datetime.now(tz=context.tz).date()
