"""Recurrence rules: slot calculation, display formatting and dose rates."""

import logging
from dataclasses import dataclass
from datetime import date

from peptide_tracker.domain.cycles import (
    DailyFrequency,
    Frequency,
    MonthlyFrequency,
    UnrecognizedFrequency,
    WeeklyFrequency,
)

WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
DEFAULT_TIME_LABEL = "08:00"
WEEKS_PER_MONTH = 52 / 12
MAX_DAILY_SLOTS = 3

_DAILY_SLOTS = {
    1: ("08:00",),
    2: ("08:00", "20:00"),
    3: ("06:00", "12:00", "20:00"),
}
_DEFAULT_WEEKLY_DAYS = {
    1: ("MON",),
    2: ("MON", "THU"),
    3: ("MON", "WED", "FRI"),
}

_logger = logging.getLogger(__name__)


class FrequencyError(ValueError):
    """Raised for frequencies outside the supported set."""


@dataclass(frozen=True)
class SlotRule:
    """Which days a frequency fires on and at which times.

    ``weekdays`` holds ``date.weekday()`` indexes and ``month_days`` holds
    days of the month; ``None`` means the filter does not apply.
    """

    time_labels: tuple[str, ...]
    weekdays: frozenset[int] | None = None
    month_days: frozenset[int] | None = None

    def labels_for(self, day: date) -> tuple[str, ...]:
        """Return the time labels that fire on ``day``."""
        if self.weekdays is not None and day.weekday() not in self.weekdays:
            return ()
        if self.month_days is not None and day.day not in self.month_days:
            return ()
        return self.time_labels


NO_SLOTS = SlotRule(time_labels=())


def daily_time_labels(times_per_day: int) -> tuple[str, ...]:
    """Return the fixed time-of-day slots for a daily count."""
    if times_per_day <= 1:
        return _DAILY_SLOTS[1]
    return _DAILY_SLOTS[min(times_per_day, MAX_DAILY_SLOTS)]


def default_weekly_days(times_per_week: int) -> tuple[str, ...]:
    """Return the documented fallback day set for a weekly count."""
    count = max(1, min(times_per_week, len(WEEKDAYS)))
    return _DEFAULT_WEEKLY_DAYS.get(count, WEEKDAYS[:count])


def canonical_weekdays(days: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Upper-case, de-duplicate and order weekday names MON..SUN."""
    wanted = {day.strip().upper()[:3] for day in days}
    return tuple(day for day in WEEKDAYS if day in wanted)


def canonical_month_days(dates: tuple[int, ...] | list[int]) -> tuple[int, ...]:
    """De-duplicate, sort and drop out-of-range days of the month."""
    return tuple(sorted({int(value) for value in dates if 1 <= int(value) <= 31}))


def weekly_days(frequency: WeeklyFrequency) -> tuple[str, ...]:
    """Return the days a weekly frequency fires on, falling back when short."""
    days = canonical_weekdays(frequency.days_of_week)
    if days and len(days) > frequency.times_per_week:
        _logger.warning(
            "Weekly frequency has %s day(s) for %s per week; expanding on %s",
            len(days),
            frequency.times_per_week,
            ",".join(days),
        )
        return days
    if days and len(days) == frequency.times_per_week:
        return days
    fallback = default_weekly_days(frequency.times_per_week)
    _logger.warning(
        "Weekly frequency has %s day(s) for %s per week; using %s",
        len(days),
        frequency.times_per_week,
        ",".join(fallback),
    )
    return fallback


def slot_rule(frequency: Frequency, *, strict: bool = False) -> SlotRule:
    """Resolve a frequency into the slot rule used by the expander.

    Unrecognized frequencies raise ``FrequencyError`` when ``strict`` is set
    and resolve to a rule with no slots otherwise.
    """
    if isinstance(frequency, DailyFrequency):
        return SlotRule(time_labels=daily_time_labels(frequency.times_per_day))
    if isinstance(frequency, WeeklyFrequency):
        days = weekly_days(frequency)
        return SlotRule(
            time_labels=(DEFAULT_TIME_LABEL,),
            weekdays=frozenset(WEEKDAYS.index(day) for day in days),
        )
    if isinstance(frequency, MonthlyFrequency):
        month_days = canonical_month_days(frequency.dates_of_month)
        if not month_days:
            return NO_SLOTS
        return SlotRule(
            time_labels=(DEFAULT_TIME_LABEL,),
            month_days=frozenset(month_days),
        )
    kind = frequency.kind if isinstance(frequency, UnrecognizedFrequency) else "?"
    if strict:
        raise FrequencyError(f"Unrecognized frequency type: {kind}")
    _logger.error("Unrecognized frequency type %s; producing no doses", kind)
    return NO_SLOTS


def normalize_frequency(frequency: Frequency) -> Frequency:
    """Validate and auto-correct a frequency before a cycle is stored."""
    if isinstance(frequency, DailyFrequency):
        times = max(1, min(frequency.times_per_day, MAX_DAILY_SLOTS))
        return DailyFrequency(times_per_day=times)
    if isinstance(frequency, WeeklyFrequency):
        times = max(1, min(frequency.times_per_week, len(WEEKDAYS)))
        days = canonical_weekdays(frequency.days_of_week)
        if len(days) == times:
            return WeeklyFrequency(times_per_week=times, days_of_week=days)
        corrected = days[:times] if len(days) > times else default_weekly_days(times)
        _logger.warning(
            "Weekly frequency days %s do not match %s per week; corrected to %s",
            ",".join(days) or "none",
            times,
            ",".join(corrected),
        )
        return WeeklyFrequency(times_per_week=times, days_of_week=corrected)
    if isinstance(frequency, MonthlyFrequency):
        dates = canonical_month_days(frequency.dates_of_month)
        return MonthlyFrequency(
            times_per_month=len(dates) or frequency.times_per_month,
            dates_of_month=dates,
        )
    raise FrequencyError(f"Unrecognized frequency type: {frequency.kind}")


def doses_per_week(frequency: Frequency) -> float:
    """Return the average number of doses per week for a frequency."""
    if isinstance(frequency, DailyFrequency):
        return frequency.times_per_day * 7
    if isinstance(frequency, WeeklyFrequency):
        days = canonical_weekdays(frequency.days_of_week)
        if days and len(days) >= frequency.times_per_week:
            return len(days)
        return len(default_weekly_days(frequency.times_per_week))
    if isinstance(frequency, MonthlyFrequency):
        return len(frequency.dates_of_month) * WEEKS_PER_MONTH
    return 0


def format_frequency(frequency: Frequency) -> str:
    """Return a human-readable description such as ``2x weekly (MON, THU)``."""
    if isinstance(frequency, DailyFrequency):
        if frequency.times_per_day == 1:
            return "Daily"
        return f"{frequency.times_per_day}x daily"
    if isinstance(frequency, WeeklyFrequency):
        days = (
            f" ({', '.join(frequency.days_of_week)})" if frequency.days_of_week else ""
        )
        return f"{frequency.times_per_week}x weekly{days}"
    if isinstance(frequency, MonthlyFrequency):
        dates = (
            f" ({', '.join(str(value) for value in frequency.dates_of_month)})"
            if frequency.dates_of_month
            else ""
        )
        return f"{frequency.times_per_month}x monthly{dates}"
    return "Unknown"


def timing_to_frequency(timing: str) -> Frequency:
    """Map free-text protocol timing (e.g. ``2x per week``) to a frequency."""
    text = timing.lower()
    if "twice daily" in text or "2x daily" in text:
        return DailyFrequency(times_per_day=2)
    if "daily" in text:
        return DailyFrequency(times_per_day=1)
    if "1-2x" in text or "2x per week" in text or "2x weekly" in text:
        return WeeklyFrequency(times_per_week=2, days_of_week=("MON", "THU"))
    if "3x" in text:
        return WeeklyFrequency(times_per_week=3, days_of_week=("MON", "WED", "FRI"))
    if "1x" in text or "weekly" in text:
        return WeeklyFrequency(times_per_week=1, days_of_week=("MON",))
    return DailyFrequency(times_per_day=1)
