"""Expansion of cycles into concrete, dated dose instances."""

import re
from datetime import date, timedelta

from peptide_tracker.domain.cycles import Cycle
from peptide_tracker.domain.doses import DoseInstance
from peptide_tracker.services.frequency import slot_rule

DEFAULT_ROUTE = "SubQ"

_DOSE_ID_PATTERN = re.compile(
    r"^(?P<cycle_id>.+)-(?P<day>\d{4}-\d{2}-\d{2})-(?P<time>\d{2}:\d{2})$"
)


def dose_instance_id(cycle_id: str, day: date, time_label: str) -> str:
    """Return the stable identifier for a (cycle, date, slot) occurrence."""
    return f"{cycle_id}-{day.isoformat()}-{time_label}"


def parse_dose_instance_id(dose_id: str) -> tuple[str, date, str] | None:
    """Split a dose id back into cycle id, date and time label."""
    match = _DOSE_ID_PATTERN.match(dose_id)
    if match is None:
        return None
    try:
        day = date.fromisoformat(match.group("day"))
    except ValueError:
        return None
    return match.group("cycle_id"), day, match.group("time")


def clip_range(
    cycle: Cycle, range_start: date, range_end: date
) -> tuple[date, date] | None:
    """Intersect the cycle's dates with a query range, or None when disjoint."""
    start = max(cycle.start_date, range_start)
    end = min(cycle.end_date, range_end)
    if start > end:
        return None
    return start, end


def expand(
    cycle: Cycle,
    range_start: date,
    range_end: date,
    *,
    default_route: str = DEFAULT_ROUTE,
    strict: bool = False,
) -> list[DoseInstance]:
    """Return the dose instances a cycle produces within a date range.

    Instances are ordered by date, then time label, and every instance
    starts out ``scheduled``; recorded statuses are applied by the
    reconciler.
    """
    window = clip_range(cycle, range_start, range_end)
    if window is None:
        return []
    rule = slot_rule(cycle.frequency, strict=strict)
    if not rule.time_labels:
        return []

    route = cycle.route or default_route
    instances: list[DoseInstance] = []
    day, end = window
    while day <= end:
        for time_label in sorted(rule.labels_for(day)):
            instances.append(
                DoseInstance(
                    id=dose_instance_id(cycle.id, day, time_label),
                    cycle_id=cycle.id,
                    peptide_name=cycle.peptide_name,
                    dose_amount=cycle.dose_amount,
                    route=route,
                    time_label=time_label,
                    scheduled_date=day,
                )
            )
        day += timedelta(days=1)
    return instances


def expand_all(
    cycles: list[Cycle],
    range_start: date,
    range_end: date,
    *,
    default_route: str = DEFAULT_ROUTE,
    strict: bool = False,
) -> list[DoseInstance]:
    """Expand several cycles and merge them in date, time, cycle order."""
    instances: list[DoseInstance] = []
    for cycle in cycles:
        instances.extend(
            expand(
                cycle,
                range_start,
                range_end,
                default_route=default_route,
                strict=strict,
            )
        )
    return sorted(
        instances,
        key=lambda item: (item.scheduled_date, item.time_label, item.cycle_id),
    )
