"""Domain models for concrete dose occurrences."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class DoseStatus(str, Enum):
    """Completion state of a single dose occurrence."""

    SCHEDULED = "scheduled"
    LOGGED = "logged"
    MISSED = "missed"


@dataclass(frozen=True)
class DoseInstance:
    """One dated, time-labelled occurrence generated from a cycle."""

    id: str
    cycle_id: str
    peptide_name: str
    dose_amount: str
    route: str
    time_label: str
    scheduled_date: date
    status: DoseStatus = DoseStatus.SCHEDULED


@dataclass(frozen=True)
class DoseRecord:
    """Persisted status override for a dose instance."""

    id: str
    cycle_id: str
    scheduled_date: date
    time_label: str
    status: DoseStatus
    deleted: bool = False
    logged_at: datetime | None = None
