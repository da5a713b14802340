"""Month grid construction and schedule assembly for the calendar view."""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from peptide_tracker.domain.calendar import CalendarCell, CalendarMonth
from peptide_tracker.domain.cycles import Cycle, CycleStatus
from peptide_tracker.domain.doses import DoseInstance, DoseStatus
from peptide_tracker.domain.results import PersistenceResult
from peptide_tracker.services.cycles import CycleRepository
from peptide_tracker.services.doses import DoseRepository
from peptide_tracker.services.expander import DEFAULT_ROUTE, expand_all
from peptide_tracker.services.frequency import WEEKDAYS
from peptide_tracker.services.persistence import call_repository
from peptide_tracker.services.reconciler import demo_backfill, reconcile

WEEKDAY_HEADERS = WEEKDAYS
GRID_ROWS = 6
GRID_CELLS = GRID_ROWS * 7
DECEMBER = 12
_SCHEDULED_STATUSES = {CycleStatus.ACTIVE, CycleStatus.PAUSED}


def grid_start(year: int, month: int) -> date:
    """Return the Monday on or before the first of the month."""
    first = date(year, month, 1)
    return first - timedelta(days=first.weekday())


def _last_day_of_following_month(year: int, month: int) -> date:
    if month == DECEMBER:
        year, month = year + 1, 1
    else:
        month += 1
    return date(year, month, calendar.monthrange(year, month)[1])


def grid_query_window(year: int, month: int) -> tuple[date, date]:
    """Return the date range to expand for a month view.

    The window covers every grid cell plus the whole following month.
    """
    start = grid_start(year, month)
    end = max(
        start + timedelta(days=GRID_CELLS - 1),
        _last_day_of_following_month(year, month),
    )
    return start, end


def bucket_by_date(
    instances: Iterable[DoseInstance],
) -> dict[date, list[DoseInstance]]:
    """Group instances by date, each bucket ordered by time label."""
    buckets: dict[date, list[DoseInstance]] = {}
    for instance in instances:
        buckets.setdefault(instance.scheduled_date, []).append(instance)
    for bucket in buckets.values():
        bucket.sort(key=lambda item: item.time_label)
    return buckets


def build_grid(
    year: int,
    month: int,
    today: date,
    instances: Iterable[DoseInstance] = (),
) -> list[CalendarCell]:
    """Return the 42 Monday-first cells for a month, with doses attached."""
    buckets = bucket_by_date(instances)
    start = grid_start(year, month)
    cells = []
    for offset in range(GRID_CELLS):
        day = start + timedelta(days=offset)
        cells.append(
            CalendarCell(
                day=day,
                is_current_month=day.month == month and day.year == year,
                is_today=day == today,
                is_past=day < today,
                doses=buckets.get(day, []),
            )
        )
    return cells


def grid_rows(cells: list[CalendarCell]) -> list[list[CalendarCell]]:
    """Split a flat grid into weeks of seven cells."""
    return [cells[index : index + 7] for index in range(0, len(cells), 7)]


def pending_count(instances: Iterable[DoseInstance], today: date) -> int:
    """Count scheduled doses dated today or later."""
    return sum(
        1
        for item in instances
        if item.status == DoseStatus.SCHEDULED and item.scheduled_date >= today
    )


def doses_for_day(month: CalendarMonth, day: date) -> list[DoseInstance]:
    """Return the doses shown in a month grid for a single date."""
    for cell in month.cells:
        if cell.day == day:
            return cell.doses
    return []


@dataclass
class CalendarService:
    """Loads cycles and dose records and assembles the reconciled schedule."""

    cycle_repository: CycleRepository
    dose_repository: DoseRepository
    default_route: str = DEFAULT_ROUTE
    strict_frequencies: bool = False
    demo_history: bool = False

    async def schedule(
        self, range_start: date, range_end: date, today: date
    ) -> PersistenceResult[list[DoseInstance]]:
        """Return reconciled dose instances for active and paused cycles."""
        cycles = await call_repository(
            self.cycle_repository.load_cycles, action="load_cycles"
        )
        if not cycles.ok:
            return PersistenceResult.failure(cycles.error or "load failed")
        records = await call_repository(
            lambda: self.dose_repository.load_dose_records(range_start, range_end),
            action="load_dose_records",
        )
        if not records.ok:
            return PersistenceResult.failure(records.error or "load failed")

        expanded = expand_all(
            _scheduled_cycles(cycles.value or []),
            range_start,
            range_end,
            default_route=self.default_route,
            strict=self.strict_frequencies,
        )
        backfill = demo_backfill(today) if self.demo_history else None
        return PersistenceResult.success(
            reconcile(expanded, records.value or [], backfill=backfill)
        )

    async def month(self, year: int, month: int, today: date) -> CalendarMonth:
        """Return the month grid; on load failure the grid is empty."""
        start, end = grid_query_window(year, month)
        result = await self.schedule(start, end, today)
        instances = result.value or []
        return CalendarMonth(
            year=year,
            month=month,
            cells=build_grid(year, month, today, instances),
            pending_count=pending_count(instances, today),
            error=result.error,
        )

    async def day(
        self, day: date, today: date
    ) -> PersistenceResult[list[DoseInstance]]:
        """Return the reconciled doses for one date."""
        return await self.schedule(day, day, today)


def _scheduled_cycles(cycles: list[Cycle]) -> list[Cycle]:
    return [cycle for cycle in cycles if cycle.status in _SCHEDULED_STATUSES]
