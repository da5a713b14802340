"""Dose status mutations and record loading."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from peptide_tracker.domain.doses import DoseRecord, DoseStatus
from peptide_tracker.domain.results import PersistenceResult
from peptide_tracker.services.expander import parse_dose_instance_id
from peptide_tracker.services.persistence import call_repository

INVALID_DOSE_ID = "invalid_dose_id"


class DoseRepository(Protocol):
    """Persistence interface for dose status overrides."""

    def load_dose_records(self, start: date, end: date) -> list[DoseRecord]:
        """Return dose records scheduled within an inclusive date range."""

    def update_dose_status(self, dose_id: str, status: DoseStatus) -> None:
        """Insert or overwrite the status for a dose id."""

    def delete_dose_record(self, dose_id: str) -> None:
        """Mark a dose id as deleted so it is no longer scheduled."""

    def delete_all_dose_records(self) -> None:
        """Remove every dose record for the account."""


@dataclass
class DoseService:
    """Application service for user actions on individual doses."""

    repository: DoseRepository

    async def load_records(
        self, start: date, end: date
    ) -> PersistenceResult[list[DoseRecord]]:
        """Return persisted records for a date range."""
        return await call_repository(
            lambda: self.repository.load_dose_records(start, end),
            action="load_dose_records",
        )

    async def set_status(
        self, dose_id: str, status: DoseStatus
    ) -> PersistenceResult[None]:
        """Persist a status for a dose; repeating the call is harmless."""
        if parse_dose_instance_id(dose_id) is None:
            return PersistenceResult.failure(INVALID_DOSE_ID)
        return await call_repository(
            lambda: self.repository.update_dose_status(dose_id, status),
            action="update_dose_status",
        )

    async def log_dose(self, dose_id: str) -> PersistenceResult[None]:
        """Mark a dose as taken."""
        return await self.set_status(dose_id, DoseStatus.LOGGED)

    async def skip_dose(self, dose_id: str) -> PersistenceResult[None]:
        """Mark a dose as missed."""
        return await self.set_status(dose_id, DoseStatus.MISSED)

    async def delete_dose(self, dose_id: str) -> PersistenceResult[None]:
        """Remove a single dose from the schedule."""
        if parse_dose_instance_id(dose_id) is None:
            return PersistenceResult.failure(INVALID_DOSE_ID)
        return await call_repository(
            lambda: self.repository.delete_dose_record(dose_id),
            action="delete_dose_record",
        )
