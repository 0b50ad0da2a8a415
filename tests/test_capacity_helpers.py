"""Tests for the date resolution and classification helpers."""

from datetime import date, datetime, timezone

import pytest

from core.config import CapacityConfig
from models.capacity import Allocation
from services.capacity import (
    clamp_weeks,
    default_period,
    end_of_week,
    next_week_start,
    parse_date_or,
    parse_due_date,
    parse_estimate,
    ratio_to_alert,
    ratio_to_status,
    round_half_up,
    start_of_week,
    week_health,
    week_label,
)

FALLBACK = datetime(2000, 1, 1)


class TestParseDateOr:
    def test_missing_value_uses_fallback(self):
        assert parse_date_or(None, FALLBACK) == FALLBACK
        assert parse_date_or("", FALLBACK) == FALLBACK

    def test_unparseable_value_uses_fallback(self):
        assert parse_date_or("not-a-date", FALLBACK) == FALLBACK
        assert parse_date_or("2025-13-45", FALLBACK) == FALLBACK

    def test_date_only_is_midnight(self):
        assert parse_date_or("2025-01-15", FALLBACK) == datetime(2025, 1, 15)

    def test_datetime_keeps_time(self):
        assert parse_date_or("2025-01-15T10:30:00", FALLBACK) == datetime(2025, 1, 15, 10, 30)

    def test_aware_value_becomes_naive(self):
        parsed = parse_date_or("2025-01-15T10:30:00Z", FALLBACK)
        assert parsed.tzinfo is None

    def test_date_object(self):
        assert parse_date_or(date(2025, 3, 1), FALLBACK) == datetime(2025, 3, 1)


class TestDefaultPeriod:
    def test_current_month_bounds(self):
        period = default_period(datetime(2025, 5, 14, 15, 30))
        assert period.start == datetime(2025, 5, 1)
        assert period.end == datetime(2025, 5, 31, 23, 59, 59, 999000)

    def test_december(self):
        period = default_period(datetime(2025, 12, 10))
        assert period.end.date() == date(2025, 12, 31)

    def test_leap_february(self):
        period = default_period(datetime(2024, 2, 3))
        assert period.end.date() == date(2024, 2, 29)

    def test_iso_rendering(self):
        period = default_period(datetime(2025, 1, 20))
        assert period.to_dict() == {
            "from": "2025-01-01T00:00:00.000",
            "to": "2025-01-31T23:59:59.999",
        }


class TestWeeks:
    def test_start_of_week_is_monday_midnight(self):
        assert start_of_week(datetime(2025, 5, 14, 15, 30)) == datetime(2025, 5, 12)
        assert start_of_week(datetime(2025, 5, 18, 23, 0)) == datetime(2025, 5, 12)
        assert start_of_week(datetime(2025, 5, 12)) == datetime(2025, 5, 12)

    def test_end_of_week_is_sunday_end_of_day(self):
        assert end_of_week(datetime(2025, 5, 5)) == datetime(2025, 5, 11, 23, 59, 59, 999000)

    def test_next_week_start_midweek(self):
        assert next_week_start(datetime(2025, 5, 14, 15, 30)) == datetime(2025, 5, 19)

    def test_next_week_start_monday_morning_plans_current_week(self):
        assert next_week_start(datetime(2025, 5, 12, 9, 0)) == datetime(2025, 5, 12)

    def test_next_week_start_monday_noon_plans_next_week(self):
        assert next_week_start(datetime(2025, 5, 12, 12, 0)) == datetime(2025, 5, 19)

    def test_next_week_start_sunday(self):
        assert next_week_start(datetime(2025, 5, 18, 8, 0)) == datetime(2025, 5, 19)

    def test_week_label(self):
        start = datetime(2025, 5, 5)
        assert week_label(start, end_of_week(start)) == "May 5 – May 11"

    def test_week_label_across_months(self):
        start = datetime(2025, 4, 28)
        assert week_label(start, end_of_week(start)) == "Apr 28 – May 4"

    @pytest.mark.parametrize(
        "requested, expected",
        [(None, 4), (0, 1), (-3, 1), (1, 1), (8, 8), (12, 8)],
    )
    def test_clamp_weeks(self, requested, expected):
        assert clamp_weeks(requested) == expected


class TestClassification:
    @pytest.mark.parametrize(
        "ratio, expected",
        [(0.0, "normal"), (0.89, "normal"), (0.9, "warning"), (1.0, "warning"),
         (1.09, "warning"), (1.1, "critical"), (2.0, "critical")],
    )
    def test_ratio_to_alert(self, ratio, expected):
        assert ratio_to_alert(ratio, CapacityConfig()) == expected

    @pytest.mark.parametrize(
        "ratio, expected",
        [(0.15, "light"), (0.49, "light"), (0.5, "balanced"), (0.89, "balanced"),
         (0.9, "tight"), (1.1, "overbooked"), (1.4, "overbooked")],
    )
    def test_ratio_to_status(self, ratio, expected):
        assert ratio_to_status(ratio, CapacityConfig()) == expected

    def test_thresholds_follow_config(self):
        config = CapacityConfig(warning_threshold=0.8, critical_threshold=1.0)
        assert ratio_to_alert(0.85, config) == "warning"
        assert ratio_to_alert(1.0, config) == "critical"
        assert ratio_to_status(1.0, config) == "overbooked"

    def test_alert_is_monotonic_in_logged_hours(self):
        config = CapacityConfig()
        severity = {"normal": 0, "warning": 1, "critical": 2}
        levels = [severity[ratio_to_alert(hours / config.monthly_hours, config)] for hours in range(0, 300)]
        assert levels == sorted(levels)

    def test_week_health_empty_is_light(self):
        assert week_health([]) == "light"

    def test_week_health_picks_most_severe(self):
        allocations = [
            Allocation(user_id=1, name="A", hours=10, utilization=25, status="light"),
            Allocation(user_id=2, name="B", hours=38, utilization=95, status="tight"),
            Allocation(user_id=3, name="C", hours=24, utilization=60, status="balanced"),
        ]
        assert week_health(allocations) == "tight"


class TestParsing:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(62.55, 1) == 62.6
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(75.0, 1) == 75.0

    def test_round_half_up_large_values(self):
        assert round_half_up(1e30, 2) == 1e30
        assert round_half_up(1.005, 2) == 1.01
        assert round_half_up(123456789012345678901234567890.0, 1) == 123456789012345678901234567890.0

    @pytest.mark.parametrize(
        "value, expected",
        [(None, 6), ("", 6), ("abc", 6), (0, 6), ("0", 6), ("nan", 6), (12.5, 12.5), ("8", 8.0)],
    )
    def test_parse_estimate(self, value, expected):
        assert parse_estimate(value, 6) == expected

    def test_parse_due_date(self):
        assert parse_due_date("2025-05-05") == date(2025, 5, 5)
        assert parse_due_date("2025-05-05T14:00:00") == date(2025, 5, 5)
        assert parse_due_date(datetime(2025, 5, 5, 9)) == date(2025, 5, 5)
        assert parse_due_date(date(2025, 5, 5)) == date(2025, 5, 5)
        assert parse_due_date(None) is None
        assert parse_due_date("") is None
        assert parse_due_date("someday") is None

    def test_parse_due_date_converts_offsets_to_local(self, new_york_tz):
        # 23:00 in Chicago is already the next day in New York
        assert parse_due_date("2025-05-18T23:00:00-05:00") == date(2025, 5, 19)
        assert parse_due_date("2025-05-19T02:00:00Z") == date(2025, 5, 18)
        assert parse_due_date(datetime(2025, 5, 19, 2, tzinfo=timezone.utc)) == date(2025, 5, 18)
        assert parse_due_date("2025-05-18T23:00:00") == date(2025, 5, 18)


def test_config_rejects_zero_capacity():
    with pytest.raises(ValueError):
        CapacityConfig(weekly_hours=0)
