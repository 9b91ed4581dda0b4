"""Analytics engine against both task store backends."""
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from taskpulse.services.analytics import (
    AnalyticsWindow,
    average_per_day,
    compute_categories,
    compute_overview,
    compute_productivity,
    compute_streak,
    percent,
    window_for_days,
)
from taskpulse.services.task_store import SqlTaskStore

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)


def record(created_at, completed_at=None, category=None, title="Task"):
    return {
        "title": title,
        "category": category,
        "completed": completed_at is not None,
        "created_at": created_at,
        "completed_at": completed_at,
    }


@pytest.fixture(params=["sql", "local"])
def store(request, db, user, local_store):
    if request.param == "sql":
        return SqlTaskStore(db, user.id)
    return local_store


class TestHelpers:
    def test_percent_rounds_half_up(self):
        assert percent(1, 8) == 13  # 12.5
        assert percent(3, 8) == 38  # 37.5
        assert percent(1, 3) == 33

    def test_percent_is_zero_without_denominator(self):
        assert percent(5, 0) == 0
        assert percent(0, 0) == 0

    def test_percent_never_exceeds_100(self):
        assert percent(12, 10) == 100

    def test_average_per_day(self):
        assert average_per_day(10, 7) == 1.4
        assert average_per_day(1, 4) == 0.3  # 0.25
        assert average_per_day(3, 0) == 3.0

    def test_window_starts_at_midnight(self):
        window = window_for_days(7, now=NOW, tz=UTC)
        assert window.start == datetime(2026, 3, 12, tzinfo=UTC)
        assert window.end == NOW
        assert window.elapsed_days == 7

    def test_single_day_window(self):
        window = window_for_days(1, now=NOW, tz=UTC)
        assert window.start == datetime(2026, 3, 18, tzinfo=UTC)
        assert window.elapsed_days == 1

    def test_window_at_midnight_still_spans_all_days(self):
        midnight = datetime(2026, 3, 18, 0, 0, tzinfo=timezone.utc)
        window = window_for_days(7, now=midnight, tz=UTC)
        assert window.elapsed_days == 7

    def test_window_across_dst_change(self):
        tz = ZoneInfo("America/New_York")
        # 00:30 on Mar 10 in New York, two days after clocks went forward
        now = datetime(2026, 3, 10, 4, 30, tzinfo=timezone.utc)
        window = window_for_days(7, now=now, tz=tz)
        assert window.elapsed_days == 7

    def test_window_rejects_non_positive_days(self):
        with pytest.raises(ValueError):
            window_for_days(0, now=NOW, tz=UTC)


class TestOverview:
    async def test_seven_day_scenario(self, store):
        records = []
        for i in range(10):
            created_at = NOW - timedelta(days=i % 7, hours=1)
            completed_at = created_at + timedelta(minutes=30) if i < 6 else None
            records.append(record(created_at, completed_at))
        await store.add_many(records)

        window = window_for_days(7, now=NOW, tz=UTC)
        overview = await compute_overview(store, window, now=NOW, tz=UTC)

        assert overview.tasks_created == 10
        assert overview.tasks_completed == 6
        assert overview.completion_rate == 60
        assert overview.average_per_day == 1.4
        assert overview.active_tasks == 4
        # completions today and on each of the 5 days before
        assert overview.streak == 6

    async def test_completed_counts_tasks_created_before_window(self, store):
        await store.add_many([record(NOW - timedelta(days=30), completed_at=NOW - timedelta(hours=2))])

        window = window_for_days(7, now=NOW, tz=UTC)
        overview = await compute_overview(store, window, now=NOW, tz=UTC)

        assert overview.tasks_created == 0
        assert overview.tasks_completed == 1
        assert overview.completion_rate == 0
        assert overview.average_per_day == 0.0

    async def test_active_tasks_ignore_window(self, store):
        await store.add_many([
            record(NOW - timedelta(days=100)),
            record(NOW - timedelta(days=1)),
            record(NOW - timedelta(days=1), completed_at=NOW - timedelta(hours=1)),
        ])

        window = window_for_days(7, now=NOW, tz=UTC)
        overview = await compute_overview(store, window, now=NOW, tz=UTC)

        assert overview.active_tasks == 2
        assert overview.tasks_created == 2

    async def test_empty_store(self, store):
        window = window_for_days(30, now=NOW, tz=UTC)
        overview = await compute_overview(store, window, now=NOW, tz=UTC)

        assert overview.model_dump() == {
            "tasks_created": 0,
            "tasks_completed": 0,
            "active_tasks": 0,
            "completion_rate": 0,
            "streak": 0,
            "average_per_day": 0.0,
        }

    async def test_camel_case_output(self, store):
        window = window_for_days(7, now=NOW, tz=UTC)
        overview = await compute_overview(store, window, now=NOW, tz=UTC)

        assert set(overview.model_dump(by_alias=True)) == {
            "tasksCreated", "tasksCompleted", "activeTasks",
            "completionRate", "streak", "averagePerDay",
        }

    async def test_repeated_computation_is_identical(self, store):
        await store.add_many([
            record(NOW - timedelta(days=2), completed_at=NOW - timedelta(hours=3), category="Work"),
            record(NOW - timedelta(days=1), category="Home"),
        ])
        window = window_for_days(7, now=NOW, tz=UTC)

        first = (
            await compute_overview(store, window, now=NOW, tz=UTC),
            await compute_productivity(store, window, tz=UTC),
            await compute_categories(store, window),
        )
        second = (
            await compute_overview(store, window, now=NOW, tz=UTC),
            await compute_productivity(store, window, tz=UTC),
            await compute_categories(store, window),
        )

        assert first == second
        assert len(await store.list_tasks()) == 2


class TestStreak:
    async def test_today_and_two_days_before(self, store):
        await store.add_many([
            record(NOW - timedelta(days=10), completed_at=NOW - timedelta(hours=1)),
            record(NOW - timedelta(days=10), completed_at=NOW - timedelta(days=1)),
            record(NOW - timedelta(days=10), completed_at=NOW - timedelta(days=2)),
            # gap on day 3, older completions do not count
            record(NOW - timedelta(days=10), completed_at=NOW - timedelta(days=4)),
        ])

        assert await compute_streak(store, now=NOW, tz=UTC) == 3

    async def test_nothing_completed_today_resets_streak(self, store):
        await store.add_many([
            record(NOW - timedelta(days=10), completed_at=NOW - timedelta(days=1)),
            record(NOW - timedelta(days=10), completed_at=NOW - timedelta(days=2)),
        ])

        assert await compute_streak(store, now=NOW, tz=UTC) == 0

    async def test_streak_is_not_limited_to_window(self, store):
        await store.add_many([
            record(NOW - timedelta(days=60), completed_at=NOW - timedelta(days=d))
            for d in range(20)
        ])

        assert await compute_streak(store, now=NOW, tz=UTC) == 20

    async def test_streak_uses_local_days(self, store):
        tz = ZoneInfo("America/New_York")
        # 01:00 UTC on the 18th is the evening of the 17th in New York
        now = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)
        await store.add_many([
            record(now - timedelta(days=5), completed_at=datetime(2026, 3, 18, 14, 0, tzinfo=timezone.utc)),
            record(now - timedelta(days=5), completed_at=datetime(2026, 3, 18, 1, 0, tzinfo=timezone.utc)),
        ])

        assert await compute_streak(store, now=now, tz=tz) == 2
        assert await compute_streak(store, now=now, tz=UTC) == 1


class TestProductivity:
    async def test_one_point_per_day_even_when_empty(self, store):
        window = window_for_days(14, now=NOW, tz=UTC)
        points = await compute_productivity(store, window, tz=UTC)

        assert len(points) == 14
        assert all(p.created == 0 and p.completed == 0 and p.completion_rate == 0 for p in points)

    async def test_points_are_chronological_with_short_labels(self, store):
        window = window_for_days(7, now=NOW, tz=UTC)
        points = await compute_productivity(store, window, tz=UTC)

        assert [p.date for p in points] == [
            "Mar 12", "Mar 13", "Mar 14", "Mar 15", "Mar 16", "Mar 17", "Mar 18",
        ]

    async def test_daily_counts(self, store):
        await store.add_many([
            record(NOW - timedelta(days=1, hours=2), completed_at=NOW - timedelta(hours=1)),
            record(NOW - timedelta(days=1, hours=3)),
            record(NOW - timedelta(hours=4), completed_at=NOW - timedelta(hours=3)),
            # outside the window
            record(NOW - timedelta(days=9)),
        ])

        window = window_for_days(3, now=NOW, tz=UTC)
        points = await compute_productivity(store, window, tz=UTC)

        assert [p.model_dump(by_alias=True) for p in points] == [
            {"date": "Mar 16", "created": 0, "completed": 0, "completionRate": 0},
            {"date": "Mar 17", "created": 2, "completed": 0, "completionRate": 0},
            {"date": "Mar 18", "created": 1, "completed": 2, "completionRate": 100},
        ]

    async def test_days_follow_configured_timezone(self, store):
        tz = ZoneInfo("America/New_York")
        now = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)
        await store.add_many([record(datetime(2026, 3, 18, 2, 0, tzinfo=timezone.utc))])

        window = window_for_days(2, now=now, tz=tz)
        points = await compute_productivity(store, window, tz=tz)

        assert [(p.date, p.created) for p in points] == [("Mar 17", 1), ("Mar 18", 0)]


class TestCategories:
    async def test_shared_category(self, store):
        await store.add_many([
            record(NOW - timedelta(days=1), completed_at=NOW - timedelta(hours=1), category="Work"),
            record(NOW - timedelta(days=2), category="Work"),
        ])

        window = window_for_days(7, now=NOW, tz=UTC)
        buckets = await compute_categories(store, window)

        assert [b.model_dump(by_alias=True) for b in buckets] == [
            {"category": "Work", "count": 2, "completed": 1, "completionRate": 50},
        ]

    async def test_sorted_by_count_and_uncategorized_skipped(self, store):
        await store.add_many([
            record(NOW - timedelta(days=1), category="Home"),
            record(NOW - timedelta(days=1), category="Work"),
            record(NOW - timedelta(days=2), category="Work"),
            record(NOW - timedelta(days=3), category="Work"),
            record(NOW - timedelta(days=1), category="Errands"),
            record(NOW - timedelta(days=1), category="Errands"),
            record(NOW - timedelta(days=1)),
            record(NOW - timedelta(days=1)),
        ])

        window = window_for_days(7, now=NOW, tz=UTC)
        buckets = await compute_categories(store, window)
        overview = await compute_overview(store, window, now=NOW, tz=UTC)

        assert [(b.category, b.count) for b in buckets] == [("Work", 3), ("Errands", 2), ("Home", 1)]
        assert sum(b.count for b in buckets) < overview.tasks_created

    async def test_categories_outside_window_are_omitted(self, store):
        await store.add_many([
            record(NOW - timedelta(days=20), category="Old"),
            record(NOW - timedelta(days=1), category="New"),
        ])

        window = window_for_days(7, now=NOW, tz=UTC)
        buckets = await compute_categories(store, window)

        assert [b.category for b in buckets] == ["New"]
        assert all(b.count > 0 for b in buckets)

    async def test_completed_flag_has_no_date_constraint(self, store):
        await store.add_many([
            record(NOW - timedelta(days=2), completed_at=NOW + timedelta(days=3), category="Work"),
        ])

        window = AnalyticsWindow(start=NOW - timedelta(days=6), end=NOW)
        buckets = await compute_categories(store, window)

        assert buckets[0].completed == 1
        assert buckets[0].completion_rate == 100
