"""Adherence and schedule progress calculations."""

import math
from collections.abc import Iterable
from datetime import date

from peptide_tracker.domain.cycles import Cycle, Frequency
from peptide_tracker.domain.doses import DoseInstance, DoseStatus
from peptide_tracker.domain.progress import CycleProgress
from peptide_tracker.services.frequency import doses_per_week

DEFAULT_SEGMENTS = 10


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def duration_weeks(start: date, end: date) -> int:
    """Return the number of started weeks in an inclusive date range."""
    if end < start:
        return 0
    return math.ceil(((end - start).days + 1) / 7)


def expected_total_doses(frequency: Frequency, start: date, end: date) -> int:
    """Return ceil(weeks) x doses per week, rounded half up."""
    return _round_half_up(duration_weeks(start, end) * doses_per_week(frequency))


def percent_complete(doses_logged: int, total_expected_doses: int) -> float:
    """Return logged/expected as a percentage clamped to [0, 100]."""
    if total_expected_doses <= 0:
        return 0.0
    percent = doses_logged / total_expected_doses * 100
    return max(0.0, min(100.0, percent))


def current_week(start: date, end: date, today: date) -> int:
    """Return the 1-based week of the cycle that ``today`` falls in."""
    total = duration_weeks(start, end)
    if total == 0:
        return 0
    elapsed = (today - start).days // 7
    return max(1, min(elapsed + 1, total))


def progress_segments(percent: float, count: int = DEFAULT_SEGMENTS) -> list[bool]:
    """Split a percentage into ``count`` buckets, filling round-half-up."""
    if count <= 0:
        return []
    bounded = max(0.0, min(100.0, percent))
    filled = min(count, _round_half_up(bounded / 100 * count))
    return [index < filled for index in range(count)]


def cycle_progress(
    cycle: Cycle, today: date, segment_count: int = DEFAULT_SEGMENTS
) -> CycleProgress:
    """Summarize a cycle from its stored doses-logged counter.

    The expected total is recomputed from the current frequency and date
    range, so edits to either are always reflected.
    """
    total = expected_total_doses(cycle.frequency, cycle.start_date, cycle.end_date)
    return _build_progress(cycle, cycle.doses_logged, total, today, segment_count)


def progress_from_instances(
    cycle: Cycle,
    instances: Iterable[DoseInstance],
    today: date,
    segment_count: int = DEFAULT_SEGMENTS,
) -> CycleProgress:
    """Summarize a cycle from reconciled instances covering its whole range."""
    own = [item for item in instances if item.cycle_id == cycle.id]
    logged = sum(1 for item in own if item.status == DoseStatus.LOGGED)
    return _build_progress(cycle, logged, len(own), today, segment_count)


def _build_progress(
    cycle: Cycle, logged: int, total: int, today: date, segment_count: int
) -> CycleProgress:
    weeks = duration_weeks(cycle.start_date, cycle.end_date)
    week = current_week(cycle.start_date, cycle.end_date, today)
    schedule_percent = week / weeks * 100 if weeks else 0.0
    return CycleProgress(
        cycle_id=cycle.id,
        doses_logged=logged,
        total_expected_doses=total,
        percent_complete=percent_complete(logged, total),
        current_week=week,
        total_weeks=weeks,
        segments=progress_segments(schedule_percent, segment_count),
    )
