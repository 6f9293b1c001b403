"""
Unit tests for period arithmetic and bucketing.
"""

import pytest
from datetime import datetime, timedelta, timezone

from usageflow.common.core.exceptions import InvalidGroupByError, InvalidPeriodError
from usageflow.usage.models.domain import UsageEvent, UsageStats
from usageflow.usage.services.periods import (
    calculate_stats,
    get_period_key,
    get_period_start,
    group_events_by_period,
    week_start,
)


def _event(credits: float, timestamp: datetime, event_id: int = 1) -> UsageEvent:
    return UsageEvent(
        id=event_id,
        user_id="user-1",
        feature_name="api_calls",
        credits_used=credits,
        event_type="usage",
        timestamp=timestamp,
    )


class TestWeekStart:
    def test_midweek_resolves_to_previous_sunday(self):
        # 2024-01-10 is a Wednesday
        assert week_start(datetime(2024, 1, 10, 15, 30, tzinfo=timezone.utc)) == datetime(
            2024, 1, 7, tzinfo=timezone.utc
        )

    def test_sunday_resolves_to_same_day_midnight(self):
        assert week_start(datetime(2024, 1, 7, 23, 59, tzinfo=timezone.utc)) == datetime(
            2024, 1, 7, tzinfo=timezone.utc
        )

    def test_saturday_belongs_to_week_started_six_days_earlier(self):
        assert week_start(datetime(2024, 1, 13, 8, 0, tzinfo=timezone.utc)) == datetime(
            2024, 1, 7, tzinfo=timezone.utc
        )


class TestGetPeriodStart:
    NOW = datetime(2024, 3, 15, 10, 45, 12, tzinfo=timezone.utc)

    def test_current_month(self):
        assert get_period_start("current_month", self.NOW) == datetime(
            2024, 3, 1, tzinfo=timezone.utc
        )

    def test_last_30_days(self):
        assert get_period_start("last_30_days", self.NOW) == self.NOW - timedelta(days=30)

    def test_last_28_days(self):
        assert get_period_start("last_28_days", self.NOW) == self.NOW - timedelta(days=28)

    def test_current_week(self):
        # 2024-03-15 is a Friday; its week starts Sunday 2024-03-10
        assert get_period_start("current_week", self.NOW) == datetime(
            2024, 3, 10, tzinfo=timezone.utc
        )

    def test_naive_now_is_treated_as_utc(self):
        naive = datetime(2024, 3, 15, 10, 45)
        assert get_period_start("current_month", naive) == datetime(
            2024, 3, 1, tzinfo=timezone.utc
        )

    def test_unknown_period_raises(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            get_period_start("last_year", self.NOW)

        assert exc_info.value.details == {"period": "last_year"}


class TestGetPeriodKey:
    TS = datetime(2024, 1, 10, 15, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "group_by,expected",
        [
            ("hour", "2024-01-10T15:00:00Z"),
            ("day", "2024-01-10"),
            ("week", "2024-01-07"),
            ("month", "2024-01"),
        ],
    )
    def test_keys(self, group_by, expected):
        assert get_period_key(self.TS, group_by) == expected

    def test_key_uses_utc_calendar(self):
        plus_five = timezone(timedelta(hours=5))
        ts = datetime(2024, 1, 10, 1, 0, tzinfo=plus_five)

        assert get_period_key(ts, "day") == "2024-01-09"

    def test_unknown_group_by_raises(self):
        with pytest.raises(InvalidGroupByError):
            get_period_key(self.TS, "minute")


class TestGroupAndStats:
    def test_buckets_summed_and_summarised(self):
        events = [
            _event(3, datetime(2024, 1, 1, 9, tzinfo=timezone.utc), 1),
            _event(1, datetime(2024, 1, 1, 18, tzinfo=timezone.utc), 2),
            _event(10, datetime(2024, 1, 2, 12, tzinfo=timezone.utc), 3),
        ]

        grouped = group_events_by_period(events, "day")
        stats = calculate_stats(grouped)

        assert grouped == {"2024-01-01": 4, "2024-01-02": 10}
        assert stats.total == 14
        assert stats.average == 7
        assert stats.max == 10
        assert stats.min == 4
        assert [(p.date, p.total) for p in stats.by_period] == [
            ("2024-01-01", 4),
            ("2024-01-02", 10),
        ]

    def test_buckets_follow_timestamp_order_not_input_order(self):
        events = [
            _event(2, datetime(2024, 2, 3, tzinfo=timezone.utc), 1),
            _event(5, datetime(2024, 1, 20, tzinfo=timezone.utc), 2),
        ]

        grouped = group_events_by_period(events, "month")

        assert list(grouped) == ["2024-01", "2024-02"]

    def test_negative_bucket_reports_true_minimum(self):
        events = [
            _event(6, datetime(2024, 1, 1, tzinfo=timezone.utc), 1),
            _event(-2, datetime(2024, 1, 2, tzinfo=timezone.utc), 2),
        ]

        stats = calculate_stats(group_events_by_period(events, "day"))

        assert stats.min == -2
        assert stats.max == 6
        assert stats.total == 4

    def test_empty_input_gives_zeroed_stats(self):
        assert calculate_stats({}) == UsageStats(
            total=0, average=0, max=0, min=0, by_period=[]
        )
