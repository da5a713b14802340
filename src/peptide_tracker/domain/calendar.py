"""Domain models for the month calendar view."""

from dataclasses import dataclass, field
from datetime import date

from peptide_tracker.domain.doses import DoseInstance


@dataclass(frozen=True)
class CalendarCell:
    """One position in the 6x7 month grid."""

    day: date
    is_current_month: bool
    is_today: bool
    is_past: bool
    doses: list[DoseInstance] = field(default_factory=list)


@dataclass(frozen=True)
class CalendarMonth:
    """A rendered month with its dose buckets."""

    year: int
    month: int
    cells: list[CalendarCell]
    pending_count: int
    error: str | None = None
