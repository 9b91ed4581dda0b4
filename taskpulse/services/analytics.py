"""Productivity analytics computed from a task store.

Three independent views are produced for a trailing window of days: the
overview cards, a per-day productivity series, and a per-category breakdown.
Nothing is cached; every call reads the store afresh and never writes to it.
Store errors propagate to the caller unchanged.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterator, List, Optional
from zoneinfo import ZoneInfo

from taskpulse.schemas.analytics import CategoryBucket, OverviewResponse, ProductivityPoint
from taskpulse.services.task_store import TaskStore
from taskpulse.utils.dates import day_label, iter_days, local_date, local_tz, start_of_day, utcnow


@dataclass(frozen=True)
class AnalyticsWindow:
    """Inclusive ``[start, end]`` range the views are computed over."""

    start: datetime
    end: datetime

    @property
    def elapsed_days(self) -> int:
        """Calendar days from ``start`` to ``end`` inclusive, in the zone of ``start``."""
        last = self.end.astimezone(self.start.tzinfo).date()
        return max(1, (last - self.start.date()).days + 1)


def window_for_days(days: int, now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> AnalyticsWindow:
    """The trailing window of *days* calendar days ending at *now*."""
    if days < 1:
        raise ValueError("days must be at least 1")
    tz = tz or local_tz()
    now = (now or utcnow()).astimezone(tz)
    first_day = now.date() - timedelta(days=days - 1)
    return AnalyticsWindow(start=start_of_day(first_day, tz), end=now)


def percent(part: int, whole: int) -> int:
    """``part / whole`` as a whole percentage, rounded half up, capped at 100."""
    if whole <= 0:
        return 0
    value = (Decimal(part) * 100 / Decimal(whole)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(100, int(value))


def average_per_day(count: int, days: int) -> float:
    value = (Decimal(count) / Decimal(max(1, days))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(value)


async def compute_streak(store: TaskStore, now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> int:
    """Consecutive days, ending today, with at least one completed task.

    A day without a completion ends the walk, today included: with nothing
    completed yet today the streak is 0.
    """
    tz = tz or local_tz()
    day = (now or utcnow()).astimezone(tz).date()
    streak = 0
    while await store.count_completed_on_day(day, tz) > 0:
        streak += 1
        day -= timedelta(days=1)
    return streak


async def compute_overview(
    store: TaskStore,
    window: AnalyticsWindow,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> OverviewResponse:
    tasks_created = await store.count_created_in_range(window.start, window.end)
    # counted on completed_at alone; a task created before the window still counts
    tasks_completed = await store.count_completed_in_range(window.start, window.end)
    # not windowed
    active_tasks = await store.count_active()
    streak = await compute_streak(store, now=now or window.end, tz=tz)

    return OverviewResponse(
        tasks_created=tasks_created,
        tasks_completed=tasks_completed,
        active_tasks=active_tasks,
        completion_rate=percent(tasks_completed, tasks_created),
        streak=streak,
        average_per_day=average_per_day(tasks_created, window.elapsed_days),
    )


def iter_productivity(
    window: AnalyticsWindow,
    created_by_day: Dict,
    completed_by_day: Dict,
    tz: ZoneInfo,
) -> Iterator[ProductivityPoint]:
    first = window.start.astimezone(tz).date()
    last = window.end.astimezone(tz).date()
    for day in iter_days(first, last):
        created = created_by_day.get(day, 0)
        completed = completed_by_day.get(day, 0)
        yield ProductivityPoint(
            date=day_label(day),
            created=created,
            completed=completed,
            completion_rate=percent(completed, created),
        )


async def compute_productivity(
    store: TaskStore,
    window: AnalyticsWindow,
    tz: Optional[ZoneInfo] = None,
) -> List[ProductivityPoint]:
    """One point per calendar day of the window, oldest first.

    A single ranged fetch is bucketed by local day in memory.
    """
    tz = tz or local_tz()
    created_ats, completed_ats = await store.timestamps_in_range(window.start, window.end)
    created_by_day = Counter(local_date(ts, tz) for ts in created_ats)
    completed_by_day = Counter(local_date(ts, tz) for ts in completed_ats)
    return list(iter_productivity(window, created_by_day, completed_by_day, tz))


async def compute_categories(store: TaskStore, window: AnalyticsWindow) -> List[CategoryBucket]:
    """Tasks created in the window, grouped by category, largest group first."""
    totals = await store.category_totals(window.start, window.end)
    return [
        CategoryBucket(
            category=total.category,
            count=total.count,
            completed=total.completed,
            completion_rate=percent(total.completed, total.count),
        )
        for total in totals
        if total.count > 0
    ]
