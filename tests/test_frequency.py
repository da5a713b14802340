"""Tests for recurrence rules."""

import logging
from datetime import date

import pytest

from peptide_tracker.domain.cycles import (
    DailyFrequency,
    MonthlyFrequency,
    UnrecognizedFrequency,
    WeeklyFrequency,
)
from peptide_tracker.services.frequency import (
    NO_SLOTS,
    FrequencyError,
    canonical_month_days,
    canonical_weekdays,
    daily_time_labels,
    default_weekly_days,
    doses_per_week,
    format_frequency,
    normalize_frequency,
    slot_rule,
    timing_to_frequency,
    weekly_days,
)


def test_daily_time_labels_fixed_slots() -> None:
    assert daily_time_labels(1) == ("08:00",)
    assert daily_time_labels(2) == ("08:00", "20:00")
    assert daily_time_labels(3) == ("06:00", "12:00", "20:00")
    assert daily_time_labels(5) == ("06:00", "12:00", "20:00")
    assert daily_time_labels(0) == ("08:00",)


def test_default_weekly_days() -> None:
    assert default_weekly_days(1) == ("MON",)
    assert default_weekly_days(2) == ("MON", "THU")
    assert default_weekly_days(3) == ("MON", "WED", "FRI")
    assert default_weekly_days(5) == ("MON", "TUE", "WED", "THU", "FRI")


def test_canonical_weekdays_orders_and_dedupes() -> None:
    assert canonical_weekdays(["thu", "Mon", "MON", " fri "]) == ("MON", "THU", "FRI")


def test_canonical_month_days_drops_out_of_range() -> None:
    assert canonical_month_days([15, 1, 1, 40, 0]) == (1, 15)


def test_weekly_slot_rule_fires_on_listed_days() -> None:
    rule = slot_rule(WeeklyFrequency(times_per_week=2, days_of_week=("MON", "THU")))

    assert rule.labels_for(date(2024, 1, 1)) == ("08:00",)
    assert rule.labels_for(date(2024, 1, 2)) == ()
    assert rule.labels_for(date(2024, 1, 4)) == ("08:00",)


def test_weekly_slot_rule_falls_back_when_days_short(package_logs) -> None:
    rule = slot_rule(WeeklyFrequency(times_per_week=2, days_of_week=("TUE",)))

    assert rule.weekdays == frozenset({0, 3})
    assert any(
        record.levelno == logging.WARNING for record in package_logs.records
    )


def test_weekly_days_warns_when_days_exceed_count(package_logs) -> None:
    frequency = WeeklyFrequency(times_per_week=1, days_of_week=("FRI", "MON", "WED"))

    assert weekly_days(frequency) == ("MON", "WED", "FRI")
    warnings = [
        record.getMessage()
        for record in package_logs.records
        if record.levelno == logging.WARNING
    ]
    assert any("expanding on MON,WED,FRI" in message for message in warnings)


def test_weekly_days_matching_count_does_not_warn(package_logs) -> None:
    frequency = WeeklyFrequency(times_per_week=2, days_of_week=("MON", "THU"))

    assert weekly_days(frequency) == ("MON", "THU")
    assert not any(
        record.levelno == logging.WARNING for record in package_logs.records
    )


def test_monthly_slot_rule_without_dates_has_no_slots() -> None:
    assert slot_rule(MonthlyFrequency(times_per_month=2)) == NO_SLOTS


def test_unknown_frequency_yields_no_slots(package_logs) -> None:
    rule = slot_rule(UnrecognizedFrequency(kind="hourly"))

    assert rule == NO_SLOTS
    assert any(record.levelno == logging.ERROR for record in package_logs.records)


def test_unknown_frequency_raises_when_strict() -> None:
    with pytest.raises(FrequencyError):
        slot_rule(UnrecognizedFrequency(kind="hourly"), strict=True)


def test_normalize_daily_clamps_count() -> None:
    assert normalize_frequency(DailyFrequency(times_per_day=5)) == DailyFrequency(
        times_per_day=3
    )


def test_normalize_weekly_fills_missing_days(package_logs) -> None:
    normalized = normalize_frequency(
        WeeklyFrequency(times_per_week=2, days_of_week=("MON",))
    )

    assert normalized == WeeklyFrequency(
        times_per_week=2, days_of_week=("MON", "THU")
    )
    assert "corrected" in package_logs.text


def test_normalize_weekly_truncates_extra_days() -> None:
    normalized = normalize_frequency(
        WeeklyFrequency(times_per_week=2, days_of_week=("fri", "mon", "wed"))
    )

    assert normalized.days_of_week == ("MON", "WED")


def test_normalize_weekly_keeps_matching_days() -> None:
    frequency = WeeklyFrequency(times_per_week=2, days_of_week=("MON", "THU"))
    assert normalize_frequency(frequency) == frequency


def test_normalize_monthly_canonicalizes_dates() -> None:
    normalized = normalize_frequency(
        MonthlyFrequency(times_per_month=4, dates_of_month=(15, 1, 1, 40))
    )

    assert normalized == MonthlyFrequency(times_per_month=2, dates_of_month=(1, 15))


def test_normalize_rejects_unknown_frequency() -> None:
    with pytest.raises(FrequencyError):
        normalize_frequency(UnrecognizedFrequency(kind="hourly"))


def test_doses_per_week() -> None:
    assert doses_per_week(DailyFrequency(times_per_day=2)) == 14
    assert (
        doses_per_week(WeeklyFrequency(times_per_week=2, days_of_week=("MON", "THU")))
        == 2
    )
    assert doses_per_week(
        MonthlyFrequency(times_per_month=2, dates_of_month=(1, 15))
    ) == pytest.approx(2 * 52 / 12)
    assert doses_per_week(UnrecognizedFrequency(kind="hourly")) == 0


def test_doses_per_week_matches_expanded_weekdays() -> None:
    assert (
        doses_per_week(
            WeeklyFrequency(times_per_week=1, days_of_week=("MON", "mon", "XYZ"))
        )
        == 1
    )
    assert (
        doses_per_week(WeeklyFrequency(times_per_week=2, days_of_week=("TUE",)))
        == 2
    )


def test_format_frequency() -> None:
    assert format_frequency(DailyFrequency(times_per_day=1)) == "Daily"
    assert format_frequency(DailyFrequency(times_per_day=2)) == "2x daily"
    assert (
        format_frequency(
            WeeklyFrequency(times_per_week=2, days_of_week=("MON", "THU"))
        )
        == "2x weekly (MON, THU)"
    )
    assert (
        format_frequency(MonthlyFrequency(times_per_month=2, dates_of_month=(1, 15)))
        == "2x monthly (1, 15)"
    )
    assert format_frequency(UnrecognizedFrequency(kind="hourly")) == "Unknown"


def test_timing_to_frequency() -> None:
    assert timing_to_frequency("Twice daily") == DailyFrequency(times_per_day=2)
    assert timing_to_frequency("Daily before bed") == DailyFrequency(times_per_day=1)
    assert timing_to_frequency("1-2x per week") == WeeklyFrequency(
        times_per_week=2, days_of_week=("MON", "THU")
    )
    assert timing_to_frequency("3x weekly") == WeeklyFrequency(
        times_per_week=3, days_of_week=("MON", "WED", "FRI")
    )
    assert timing_to_frequency("1x per week") == WeeklyFrequency(
        times_per_week=1, days_of_week=("MON",)
    )
    assert timing_to_frequency("as needed") == DailyFrequency(times_per_day=1)
