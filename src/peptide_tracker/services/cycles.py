"""Cycle lifecycle: creation, protocol batches and status actions."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import uuid4

from peptide_tracker.domain.cycles import Cycle, CycleStatus, Frequency, NewCycle
from peptide_tracker.domain.protocols import ProtocolTemplate
from peptide_tracker.domain.results import PersistenceResult
from peptide_tracker.services.doses import DoseRepository
from peptide_tracker.services.frequency import normalize_frequency, timing_to_frequency
from peptide_tracker.services.persistence import call_repository
from peptide_tracker.services.progress import expected_total_doses

CYCLE_NOT_FOUND = "cycle_not_found"
MAX_DURATION_WEEKS = 52
ONGOING_DURATION_WEEKS = 12
DEFAULT_DURATION_WEEKS = 8

_logger = logging.getLogger(__name__)


class InvalidCycleError(ValueError):
    """Raised when cycle input cannot produce a valid schedule."""


class CycleRepository(Protocol):
    """Persistence interface for cycle definitions."""

    def load_cycles(self) -> list[Cycle]:
        """Return all cycles, newest start date first."""

    def get_cycle(self, cycle_id: str) -> Cycle | None:
        """Return a cycle by id, if present."""

    def save_cycles(self, cycles: list[Cycle]) -> None:
        """Insert or overwrite cycles by id."""

    def delete_all_cycles(self) -> None:
        """Remove every cycle for the account."""


def parse_duration_weeks(duration: str) -> int:
    """Parse a protocol duration such as ``8 weeks`` or ``ongoing``."""
    match = re.search(r"(\d+)", duration)
    if match:
        return min(MAX_DURATION_WEEKS, int(match.group(1)))
    if "ongoing" in duration.lower():
        return ONGOING_DURATION_WEEKS
    return DEFAULT_DURATION_WEEKS


def cycle_end_date(start: date, weeks: int) -> date:
    """Return the inclusive end date of a cycle lasting ``weeks`` weeks."""
    return start + timedelta(days=weeks * 7 - 1)


def build_cycle(  # noqa: PLR0913
    *,
    peptide_name: str,
    dose_amount: str,
    frequency: Frequency,
    start_date: date,
    end_date: date,
    notes: str | None = None,
    route: str | None = None,
    protocol_id: str | None = None,
) -> Cycle:
    """Validate input and return a new active cycle."""
    name = peptide_name.strip()
    if not name:
        raise InvalidCycleError("Peptide name is required")
    if end_date < start_date:
        raise InvalidCycleError("End date must not be before start date")
    normalized = normalize_frequency(frequency)
    return Cycle(
        id=str(uuid4()),
        peptide_name=name,
        dose_amount=dose_amount.strip(),
        frequency=normalized,
        start_date=start_date,
        end_date=end_date,
        status=CycleStatus.ACTIVE,
        doses_logged=0,
        total_expected_doses=expected_total_doses(normalized, start_date, end_date),
        notes=notes or None,
        protocol_id=protocol_id,
        route=route or None,
    )


@dataclass
class CycleService:
    """Application service for cycle management."""

    repository: CycleRepository
    dose_repository: DoseRepository

    async def list_cycles(self) -> PersistenceResult[list[Cycle]]:
        """Return all stored cycles."""
        return await call_repository(self.repository.load_cycles, action="load_cycles")

    async def get_cycle(self, cycle_id: str) -> PersistenceResult[Cycle]:
        """Return one cycle, failing with ``CYCLE_NOT_FOUND`` when absent."""
        loaded = await call_repository(
            lambda: self.repository.get_cycle(cycle_id), action="get_cycle"
        )
        if not loaded.ok:
            return PersistenceResult.failure(loaded.error or "load failed")
        if loaded.value is None:
            return PersistenceResult.failure(CYCLE_NOT_FOUND)
        return PersistenceResult.success(loaded.value)

    async def create_cycle(self, request: NewCycle) -> PersistenceResult[Cycle]:
        """Create and persist a single cycle."""
        if request.duration_weeks <= 0:
            raise InvalidCycleError("Duration must be at least one week")
        cycle = build_cycle(
            peptide_name=request.peptide_name,
            dose_amount=request.dose_amount,
            frequency=request.frequency,
            start_date=request.start_date,
            end_date=cycle_end_date(request.start_date, request.duration_weeks),
            notes=request.notes,
            route=request.route,
        )
        result = await call_repository(
            lambda: self.repository.save_cycles([cycle]), action="save_cycles"
        )
        if not result.ok:
            return PersistenceResult.failure(result.error or "save failed")
        _logger.info("Created cycle %s for %s", cycle.id, cycle.peptide_name)
        return PersistenceResult.success(cycle)

    async def create_from_protocol(
        self, template: ProtocolTemplate, start_date: date
    ) -> PersistenceResult[list[Cycle]]:
        """Create one cycle per peptide in a protocol template."""
        if not template.peptides:
            raise InvalidCycleError("Protocol has no peptides")
        weeks = parse_duration_weeks(template.duration)
        end_date = cycle_end_date(start_date, weeks)
        cycles = [
            build_cycle(
                peptide_name=peptide.name,
                dose_amount=peptide.dose,
                frequency=timing_to_frequency(peptide.timing),
                start_date=start_date,
                end_date=end_date,
                route=peptide.route,
                protocol_id=template.id,
            )
            for peptide in template.peptides
        ]
        result = await call_repository(
            lambda: self.repository.save_cycles(cycles), action="save_cycles"
        )
        if not result.ok:
            return PersistenceResult.failure(result.error or "save failed")
        _logger.info(
            "Created %s cycle(s) from protocol %s", len(cycles), template.name
        )
        return PersistenceResult.success(cycles)

    async def log_dose(self, cycle_id: str) -> PersistenceResult[Cycle]:
        """Increment the doses-logged counter, capped at the expected total."""

        def _log(cycle: Cycle) -> Cycle:
            total = expected_total_doses(
                cycle.frequency, cycle.start_date, cycle.end_date
            )
            return replace(cycle, doses_logged=min(cycle.doses_logged + 1, total))

        return await self._mutate(cycle_id, _log, action="log_dose")

    async def pause(self, cycle_id: str) -> PersistenceResult[Cycle]:
        """Pause an active cycle."""
        return await self._mutate(
            cycle_id,
            lambda cycle: replace(cycle, status=CycleStatus.PAUSED),
            action="pause",
        )

    async def resume(self, cycle_id: str) -> PersistenceResult[Cycle]:
        """Resume a paused cycle."""
        return await self._mutate(
            cycle_id,
            lambda cycle: replace(cycle, status=CycleStatus.ACTIVE),
            action="resume",
        )

    async def toggle_pause(self, cycle_id: str) -> PersistenceResult[Cycle]:
        """Flip a cycle between active and paused."""

        def _toggle(cycle: Cycle) -> Cycle:
            status = (
                CycleStatus.ACTIVE
                if cycle.status == CycleStatus.PAUSED
                else CycleStatus.PAUSED
            )
            return replace(cycle, status=status)

        return await self._mutate(cycle_id, _toggle, action="toggle_pause")

    async def complete(self, cycle_id: str) -> PersistenceResult[Cycle]:
        """Mark a cycle completed and stamp the completion time."""
        return await self._mutate(
            cycle_id,
            lambda cycle: replace(
                cycle,
                status=CycleStatus.COMPLETED,
                completed_at=datetime.now(tz=UTC),
            ),
            action="complete",
        )

    async def update_frequency(
        self, cycle_id: str, frequency: Frequency
    ) -> PersistenceResult[Cycle]:
        """Replace a cycle's frequency and recompute its expected total."""
        normalized = normalize_frequency(frequency)
        return await self._mutate(
            cycle_id,
            lambda cycle: replace(
                cycle,
                frequency=normalized,
                total_expected_doses=expected_total_doses(
                    normalized, cycle.start_date, cycle.end_date
                ),
            ),
            action="update_frequency",
        )

    async def clear_all(self) -> PersistenceResult[None]:
        """Delete every cycle and dose record.

        Cycles are deleted first; leftover dose records are never expanded.
        """
        cycles = await call_repository(
            self.repository.delete_all_cycles, action="delete_all_cycles"
        )
        if not cycles.ok:
            return cycles
        doses = await call_repository(
            self.dose_repository.delete_all_dose_records,
            action="delete_all_dose_records",
        )
        if doses.ok:
            _logger.info("Cleared all cycles and dose records")
        return doses

    async def _mutate(
        self, cycle_id: str, change: Callable[[Cycle], Cycle], *, action: str
    ) -> PersistenceResult[Cycle]:
        loaded = await self.get_cycle(cycle_id)
        if not loaded.ok or loaded.value is None:
            return loaded
        cycle = loaded.value
        if cycle.status == CycleStatus.COMPLETED:
            return PersistenceResult.success(cycle)
        updated = change(cycle)
        saved = await call_repository(
            lambda: self.repository.save_cycles([updated]), action=action
        )
        if not saved.ok:
            return PersistenceResult.failure(saved.error or "save failed")
        return PersistenceResult.success(updated)
