"""Supabase repository for dose status overrides."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from peptide_tracker.domain.doses import DoseRecord, DoseStatus
from peptide_tracker.services.doses import DoseRepository
from peptide_tracker.services.expander import parse_dose_instance_id


@dataclass
class SupabaseDoseRepository(DoseRepository):
    """Supabase implementation for dose records.

    Rows are keyed by the deterministic dose id, so writes are upserts and
    repeating one leaves a single row.
    """

    client: Client
    user_id: UUID

    def load_dose_records(self, start: date, end: date) -> list[DoseRecord]:
        """Return dose records in the inclusive date range."""
        response = (
            self.client.table("doses")
            .select(
                "id, cycle_id, scheduled_date, time_label, status, deleted, logged_at"
            )
            .eq("user_id", str(self.user_id))
            .gte("scheduled_date", start.isoformat())
            .lte("scheduled_date", end.isoformat())
            .order("scheduled_date", desc=False)
            .execute()
        )
        return [_parse_record(row) for row in response.data or []]

    def update_dose_status(self, dose_id: str, status: DoseStatus) -> None:
        """Upsert the status for a dose id."""
        now = datetime.now(tz=UTC).isoformat()
        payload = self._base_row(dose_id)
        payload.update(
            {
                "status": status.value,
                "logged_at": now if status == DoseStatus.LOGGED else None,
                "updated_at": now,
            }
        )
        self.client.table("doses").upsert(payload).execute()

    def delete_dose_record(self, dose_id: str) -> None:
        """Upsert a tombstone so the dose stays removed on later expansions."""
        payload = self._base_row(dose_id)
        payload.update(
            {
                "status": DoseStatus.SCHEDULED.value,
                "deleted": True,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        )
        self.client.table("doses").upsert(payload).execute()

    def delete_all_dose_records(self) -> None:
        """Delete every dose row for the account."""
        self.client.table("doses").delete().eq("user_id", str(self.user_id)).execute()

    def _base_row(self, dose_id: str) -> dict[str, object]:
        parsed = parse_dose_instance_id(dose_id)
        if parsed is None:
            raise ValueError(f"Malformed dose id: {dose_id}")
        cycle_id, scheduled_date, time_label = parsed
        return {
            "id": dose_id,
            "user_id": str(self.user_id),
            "cycle_id": cycle_id,
            "scheduled_date": scheduled_date.isoformat(),
            "time_label": time_label,
        }


def _parse_record(row: dict[str, object]) -> DoseRecord:
    logged_raw = row.get("logged_at")
    return DoseRecord(
        id=str(row["id"]),
        cycle_id=str(row.get("cycle_id", "")),
        scheduled_date=date.fromisoformat(str(row["scheduled_date"])[:10]),
        time_label=str(row.get("time_label", "")),
        status=DoseStatus(row.get("status") or DoseStatus.SCHEDULED.value),
        deleted=bool(row.get("deleted", False)),
        logged_at=(
            datetime.fromisoformat(logged_raw)
            if isinstance(logged_raw, str) and logged_raw
            else None
        ),
    )
