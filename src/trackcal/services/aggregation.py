"""Pure aggregation over entry snapshots, bucketed by local calendar day."""

from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from trackcal.domain.entries import FoodEntry
from trackcal.domain.stats import (
    DailyProgress,
    DailyTotals,
    DayBucket,
    DayStatus,
    Goals,
)

# 0.9 of the goal, as an integer ratio so the boundary compares exactly.
GOAL_TOLERANCE = (9, 10)
WEEK_DAYS = 7


def to_local(timestamp_ms: int, tz: ZoneInfo) -> datetime:
    """Convert epoch milliseconds to an aware datetime in ``tz``."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).astimezone(tz)


def local_midnight_ms(day: date, tz: ZoneInfo) -> int:
    """Return local midnight of ``day`` in epoch milliseconds."""
    midnight = datetime.combine(day, time.min, tzinfo=tz)
    return int(midnight.timestamp() * 1000)


def start_of_day(timestamp_ms: int, tz: ZoneInfo) -> int:
    """Truncate an instant to local midnight of its day."""
    return local_midnight_ms(to_local(timestamp_ms, tz).date(), tz)


def day_window(day: date, tz: ZoneInfo) -> tuple[int, int]:
    """Return the half-open ``[start, end)`` window of a local day."""
    return local_midnight_ms(day, tz), local_midnight_ms(day + timedelta(days=1), tz)


def entries_between(
    entries: Iterable[FoodEntry], start_ms: int, end_ms: int
) -> list[FoodEntry]:
    """Return entries whose timestamp falls inside ``[start_ms, end_ms)``."""
    return [entry for entry in entries if start_ms <= entry.timestamp < end_ms]


def todays_entries(
    entries: Iterable[FoodEntry], now_ms: int, tz: ZoneInfo
) -> list[FoodEntry]:
    """Return the entries logged on the local day of ``now_ms``."""
    start, end = day_window(to_local(now_ms, tz).date(), tz)
    return entries_between(entries, start, end)


def daily_totals(
    entries: Iterable[FoodEntry], now_ms: int, tz: ZoneInfo
) -> DailyTotals:
    """Sum calories and protein for the local day of ``now_ms``."""
    return _sum(todays_entries(entries, now_ms, tz))


def daily_progress(
    entries: Iterable[FoodEntry], now_ms: int, tz: ZoneInfo, goals: Goals
) -> DailyProgress:
    """Return today's totals with remaining calories and a capped fraction."""
    totals = daily_totals(entries, now_ms, tz)
    if goals.calories > 0:
        fraction = min(totals.calories / goals.calories, 1.0)
    else:
        fraction = 0.0
    return DailyProgress(
        totals=totals,
        goals=goals,
        calories_remaining=max(goals.calories - totals.calories, 0),
        calorie_fraction=fraction,
    )


def weekly_buckets(
    entries: Iterable[FoodEntry], now_ms: int, tz: ZoneInfo, goals: Goals
) -> list[DayBucket]:
    """Return seven day buckets ending today, oldest first."""
    snapshot = list(entries)
    today = to_local(now_ms, tz).date()
    buckets = []
    for offset in range(WEEK_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        start, end = day_window(day, tz)
        day_entries = entries_between(snapshot, start, end)
        totals = _sum(day_entries)
        buckets.append(
            DayBucket(
                day=day,
                start_ms=start,
                end_ms=end,
                calories=totals.calories,
                protein=totals.protein,
                entry_count=len(day_entries),
                status=classify_day(totals, len(day_entries), goals),
            )
        )
    return buckets


def classify_day(totals: DailyTotals, entry_count: int, goals: Goals) -> DayStatus:
    """Classify a day against the goals with the near-goal tolerance."""
    if entry_count == 0:
        return DayStatus.EMPTY
    calories_met = _meets(totals.calories, goals.calories)
    protein_met = _meets(totals.protein, goals.protein)
    if calories_met and protein_met:
        return DayStatus.MET_BOTH
    if calories_met or protein_met:
        return DayStatus.MET_ONE
    return DayStatus.MET_NONE


def _meets(value: int, goal: int) -> bool:
    # A non-positive goal is never met.
    if goal <= 0:
        return False
    numerator, denominator = GOAL_TOLERANCE
    return value * denominator >= goal * numerator


def _sum(entries: Iterable[FoodEntry]) -> DailyTotals:
    calories = 0
    protein = 0
    for entry in entries:
        calories += entry.calories
        protein += entry.protein
    return DailyTotals(calories=calories, protein=protein)
