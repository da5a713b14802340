"""Supabase repository for cycle definitions."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from peptide_tracker.domain.cycles import (
    Cycle,
    CycleStatus,
    DailyFrequency,
    Frequency,
    MonthlyFrequency,
    UnrecognizedFrequency,
    WeeklyFrequency,
)
from peptide_tracker.services.cycles import CycleRepository

_COLUMNS = (
    "id, peptide_name, dose_amount, route, frequency_type, frequency_times, "
    "frequency_days, frequency_dates, start_date, end_date, status, protocol_id, "
    "doses_logged, total_expected_doses, notes, completed_at"
)

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseCycleRepository(CycleRepository):
    """Supabase implementation for cycle persistence."""

    client: Client
    user_id: UUID

    def load_cycles(self) -> list[Cycle]:
        """Return all cycles for the account, newest start first."""
        response = (
            self.client.table("cycles")
            .select(_COLUMNS)
            .eq("user_id", str(self.user_id))
            .order("start_date", desc=True)
            .execute()
        )
        cycles: list[Cycle] = []
        for row in response.data or []:
            try:
                cycles.append(_parse_cycle(row))
            except (KeyError, TypeError, ValueError) as exc:
                _logger.warning(
                    "Skipping unreadable cycle row %s: %s", row.get("id"), exc
                )
        return cycles

    def get_cycle(self, cycle_id: str) -> Cycle | None:
        """Return a cycle by id."""
        response = (
            self.client.table("cycles")
            .select(_COLUMNS)
            .eq("user_id", str(self.user_id))
            .eq("id", cycle_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_cycle(response.data[0])

    def save_cycles(self, cycles: list[Cycle]) -> None:
        """Upsert cycle rows by id."""
        payload = [_cycle_to_row(cycle, self.user_id) for cycle in cycles]
        if payload:
            self.client.table("cycles").upsert(payload).execute()

    def delete_all_cycles(self) -> None:
        """Delete every cycle row for the account."""
        self.client.table("cycles").delete().eq("user_id", str(self.user_id)).execute()


def frequency_to_row(frequency: Frequency) -> dict[str, object]:
    """Flatten a frequency into the cycles table columns."""
    if isinstance(frequency, DailyFrequency):
        return {
            "frequency_type": "daily",
            "frequency_times": frequency.times_per_day,
            "frequency_days": None,
            "frequency_dates": None,
        }
    if isinstance(frequency, WeeklyFrequency):
        return {
            "frequency_type": "weekly",
            "frequency_times": frequency.times_per_week,
            "frequency_days": list(frequency.days_of_week),
            "frequency_dates": None,
        }
    if isinstance(frequency, MonthlyFrequency):
        return {
            "frequency_type": "monthly",
            "frequency_times": frequency.times_per_month,
            "frequency_days": None,
            "frequency_dates": list(frequency.dates_of_month),
        }
    return {
        "frequency_type": frequency.kind,
        "frequency_times": 0,
        "frequency_days": None,
        "frequency_dates": None,
    }


def frequency_from_row(row: dict[str, object]) -> Frequency:
    """Rebuild a frequency from the cycles table columns."""
    kind = str(row.get("frequency_type") or "")
    times = int(row.get("frequency_times") or 0)
    if kind == "daily":
        return DailyFrequency(times_per_day=times)
    if kind == "weekly":
        days = row.get("frequency_days") or []
        return WeeklyFrequency(
            times_per_week=times, days_of_week=tuple(str(day) for day in days)
        )
    if kind == "monthly":
        dates = row.get("frequency_dates") or []
        return MonthlyFrequency(
            times_per_month=times, dates_of_month=tuple(int(value) for value in dates)
        )
    return UnrecognizedFrequency(kind=kind)


def _cycle_to_row(cycle: Cycle, user_id: UUID) -> dict[str, object]:
    return {
        "id": cycle.id,
        "user_id": str(user_id),
        "peptide_name": cycle.peptide_name,
        "dose_amount": cycle.dose_amount,
        "route": cycle.route,
        **frequency_to_row(cycle.frequency),
        "start_date": cycle.start_date.isoformat(),
        "end_date": cycle.end_date.isoformat(),
        "status": cycle.status.value,
        "protocol_id": cycle.protocol_id,
        "doses_logged": cycle.doses_logged,
        "total_expected_doses": cycle.total_expected_doses,
        "notes": cycle.notes,
        "completed_at": cycle.completed_at.isoformat() if cycle.completed_at else None,
    }


def _parse_cycle(row: dict[str, object]) -> Cycle:
    completed_raw = row.get("completed_at")
    return Cycle(
        id=str(row["id"]),
        peptide_name=str(row.get("peptide_name", "")),
        dose_amount=str(row.get("dose_amount", "")),
        frequency=frequency_from_row(row),
        start_date=date.fromisoformat(str(row["start_date"])[:10]),
        end_date=date.fromisoformat(str(row["end_date"])[:10]),
        status=CycleStatus(row.get("status") or CycleStatus.ACTIVE.value),
        doses_logged=int(row.get("doses_logged") or 0),
        total_expected_doses=int(row.get("total_expected_doses") or 0),
        notes=row.get("notes"),
        protocol_id=row.get("protocol_id"),
        route=row.get("route"),
        completed_at=(
            datetime.fromisoformat(completed_raw)
            if isinstance(completed_raw, str) and completed_raw
            else None
        ),
    )
