"""Progress summary models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CycleProgress:
    """Adherence and schedule progress for a cycle."""

    cycle_id: str
    doses_logged: int
    total_expected_doses: int
    percent_complete: float
    current_week: int
    total_weeks: int
    segments: list[bool]
