"""Domain models for dosing cycles and their recurrence rules."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class CycleStatus(str, Enum):
    """Lifecycle state of a cycle."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class DailyFrequency:
    """Fires a fixed number of times every calendar day."""

    times_per_day: int


@dataclass(frozen=True)
class WeeklyFrequency:
    """Fires once on each listed weekday (MON..SUN)."""

    times_per_week: int
    days_of_week: tuple[str, ...] = ()


@dataclass(frozen=True)
class MonthlyFrequency:
    """Fires once on each listed day of the month."""

    times_per_month: int
    dates_of_month: tuple[int, ...] = ()


@dataclass(frozen=True)
class UnrecognizedFrequency:
    """A stored frequency whose tag is not part of the closed set."""

    kind: str


Frequency = DailyFrequency | WeeklyFrequency | MonthlyFrequency | UnrecognizedFrequency


@dataclass(frozen=True)
class Cycle:
    """A recurring administration plan for one substance."""

    id: str
    peptide_name: str
    dose_amount: str
    frequency: Frequency
    start_date: date
    end_date: date
    status: CycleStatus = CycleStatus.ACTIVE
    doses_logged: int = 0
    total_expected_doses: int = 0
    notes: str | None = None
    protocol_id: str | None = None
    route: str | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class NewCycle:
    """User input for creating a single cycle."""

    peptide_name: str
    dose_amount: str
    frequency: Frequency
    start_date: date
    duration_weeks: int
    notes: str | None = None
    route: str | None = None
