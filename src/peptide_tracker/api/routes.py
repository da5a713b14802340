"""Schedule API endpoints consumed by the presentation layer."""

from __future__ import annotations

from datetime import MAXYEAR, MINYEAR, date, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from peptide_tracker.api.models import (
    CreateCyclePayload,
    ProtocolPayload,
    UpdateFrequencyPayload,
)
from peptide_tracker.domain.doses import DoseInstance
from peptide_tracker.services.calendar import DECEMBER, WEEKDAY_HEADERS, grid_rows
from peptide_tracker.services.cycles import CYCLE_NOT_FOUND, InvalidCycleError
from peptide_tracker.services.doses import INVALID_DOSE_ID
from peptide_tracker.services.frequency import FrequencyError, format_frequency
from peptide_tracker.services.progress import cycle_progress

if TYPE_CHECKING:
    from peptide_tracker.containers import AppContainer
    from peptide_tracker.domain.calendar import CalendarCell, CalendarMonth
    from peptide_tracker.domain.cycles import Cycle
    from peptide_tracker.domain.progress import CycleProgress
    from peptide_tracker.domain.results import PersistenceResult


_UNPROCESSABLE = 422


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


def _get_api_token(request: Request) -> str | None:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str | None = Depends(_get_api_token),
) -> None:
    """Check the shared API token when one is configured."""
    if api_token and x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(dependencies=[Depends(require_token)])


def _today(container: AppContainer) -> date:
    return datetime.now(tz=ZoneInfo(container.settings.timezone)).date()


def _unwrap(result: PersistenceResult) -> object:
    """Return a result's value or raise the matching HTTP error."""
    if result.ok:
        return result.value
    if result.error == CYCLE_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    if result.error == INVALID_DOSE_ID:
        raise HTTPException(status_code=_UNPROCESSABLE, detail=result.error)
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)


@router.get("/cycles")
async def list_cycles(request: Request) -> dict[str, object]:
    """Return all cycles."""
    container = _get_container(request)
    cycles = _unwrap(await container.cycle_service.list_cycles())
    return {"cycles": [_serialize_cycle(cycle) for cycle in cycles]}


@router.post("/cycles", status_code=status.HTTP_201_CREATED)
async def create_cycle(
    payload: CreateCyclePayload, request: Request
) -> dict[str, object]:
    """Create a single cycle."""
    container = _get_container(request)
    try:
        result = await container.cycle_service.create_cycle(payload.to_new_cycle())
    except (InvalidCycleError, FrequencyError) as exc:
        raise HTTPException(status_code=_UNPROCESSABLE, detail=str(exc)) from exc
    return {"cycle": _serialize_cycle(_unwrap(result))}


@router.post("/cycles/from-protocol", status_code=status.HTTP_201_CREATED)
async def create_from_protocol(
    payload: ProtocolPayload, request: Request
) -> dict[str, object]:
    """Create one cycle per peptide of a protocol template."""
    container = _get_container(request)
    start_date = payload.start_date or _today(container)
    try:
        result = await container.cycle_service.create_from_protocol(
            payload.to_template(), start_date
        )
    except InvalidCycleError as exc:
        raise HTTPException(status_code=_UNPROCESSABLE, detail=str(exc)) from exc
    return {"cycles": [_serialize_cycle(cycle) for cycle in _unwrap(result)]}


@router.delete("/cycles")
async def clear_all(request: Request) -> dict[str, str]:
    """Delete every cycle and dose record."""
    container = _get_container(request)
    _unwrap(await container.cycle_service.clear_all())
    return {"status": "ok"}


@router.post("/cycles/{cycle_id}/log")
async def log_cycle_dose(cycle_id: str, request: Request) -> dict[str, object]:
    """Increment a cycle's logged-dose counter."""
    container = _get_container(request)
    cycle = _unwrap(await container.cycle_service.log_dose(cycle_id))
    return {"cycle": _serialize_cycle(cycle)}


@router.post("/cycles/{cycle_id}/pause")
async def pause_cycle(cycle_id: str, request: Request) -> dict[str, object]:
    """Pause a cycle."""
    container = _get_container(request)
    cycle = _unwrap(await container.cycle_service.pause(cycle_id))
    return {"cycle": _serialize_cycle(cycle)}


@router.post("/cycles/{cycle_id}/resume")
async def resume_cycle(cycle_id: str, request: Request) -> dict[str, object]:
    """Resume a paused cycle."""
    container = _get_container(request)
    cycle = _unwrap(await container.cycle_service.resume(cycle_id))
    return {"cycle": _serialize_cycle(cycle)}


@router.post("/cycles/{cycle_id}/complete")
async def complete_cycle(cycle_id: str, request: Request) -> dict[str, object]:
    """Complete a cycle."""
    container = _get_container(request)
    cycle = _unwrap(await container.cycle_service.complete(cycle_id))
    return {"cycle": _serialize_cycle(cycle)}


@router.put("/cycles/{cycle_id}/frequency")
async def update_frequency(
    cycle_id: str, payload: UpdateFrequencyPayload, request: Request
) -> dict[str, object]:
    """Replace a cycle's frequency."""
    container = _get_container(request)
    result = await container.cycle_service.update_frequency(
        cycle_id, payload.frequency.to_frequency()
    )
    return {"cycle": _serialize_cycle(_unwrap(result))}


@router.get("/cycles/{cycle_id}/progress")
async def get_progress(cycle_id: str, request: Request) -> dict[str, object]:
    """Return adherence and schedule progress for a cycle."""
    container = _get_container(request)
    cycle = _unwrap(await container.cycle_service.get_cycle(cycle_id))
    progress = cycle_progress(
        cycle, _today(container), container.settings.progress_segments
    )
    return _serialize_progress(progress)


@router.get("/calendar/{year}/{month}")
async def get_month(year: int, month: int, request: Request) -> dict[str, object]:
    """Return the 6x7 grid for a month with doses bucketed per day."""
    if not 1 <= month <= DECEMBER or not MINYEAR < year < MAXYEAR:
        raise HTTPException(status_code=_UNPROCESSABLE)
    container = _get_container(request)
    view = await container.calendar_service.month(year, month, _today(container))
    return _serialize_month(view)


@router.get("/calendar/{year}/{month}/{day}")
async def get_day(
    year: int, month: int, day: int, request: Request
) -> dict[str, object]:
    """Return the doses scheduled on a single date."""
    if not MINYEAR < year < MAXYEAR:
        raise HTTPException(status_code=_UNPROCESSABLE)
    try:
        target = date(year, month, day)
    except ValueError as exc:
        raise HTTPException(status_code=_UNPROCESSABLE, detail=str(exc)) from exc
    container = _get_container(request)
    doses = _unwrap(await container.calendar_service.day(target, _today(container)))
    return {"date": target.isoformat(), "doses": [_serialize_dose(d) for d in doses]}


@router.post("/doses/{dose_id}/log")
async def log_dose(dose_id: str, request: Request) -> dict[str, str]:
    """Mark a dose as logged."""
    container = _get_container(request)
    _unwrap(await container.dose_service.log_dose(dose_id))
    return {"status": "ok"}


@router.post("/doses/{dose_id}/skip")
async def skip_dose(dose_id: str, request: Request) -> dict[str, str]:
    """Mark a dose as missed."""
    container = _get_container(request)
    _unwrap(await container.dose_service.skip_dose(dose_id))
    return {"status": "ok"}


@router.delete("/doses/{dose_id}")
async def delete_dose(dose_id: str, request: Request) -> dict[str, str]:
    """Remove a single dose from the schedule."""
    container = _get_container(request)
    _unwrap(await container.dose_service.delete_dose(dose_id))
    return {"status": "ok"}


def _serialize_cycle(cycle: Cycle) -> dict[str, object]:
    return {
        "id": cycle.id,
        "peptide_name": cycle.peptide_name,
        "dose_amount": cycle.dose_amount,
        "route": cycle.route,
        "frequency": format_frequency(cycle.frequency),
        "start_date": cycle.start_date.isoformat(),
        "end_date": cycle.end_date.isoformat(),
        "status": cycle.status.value,
        "protocol_id": cycle.protocol_id,
        "doses_logged": cycle.doses_logged,
        "total_expected_doses": cycle.total_expected_doses,
        "notes": cycle.notes,
        "completed_at": cycle.completed_at.isoformat() if cycle.completed_at else None,
    }


def _serialize_dose(dose: DoseInstance) -> dict[str, object]:
    return {
        "id": dose.id,
        "cycle_id": dose.cycle_id,
        "peptide_name": dose.peptide_name,
        "dose_amount": dose.dose_amount,
        "route": dose.route,
        "time_label": dose.time_label,
        "date": dose.scheduled_date.isoformat(),
        "status": dose.status.value,
    }


def _serialize_cell(cell: CalendarCell) -> dict[str, object]:
    return {
        "date": cell.day.isoformat(),
        "is_current_month": cell.is_current_month,
        "is_today": cell.is_today,
        "is_past": cell.is_past,
        "doses": [_serialize_dose(dose) for dose in cell.doses],
    }


def _serialize_month(view: CalendarMonth) -> dict[str, object]:
    return {
        "year": view.year,
        "month": view.month,
        "weekdays": list(WEEKDAY_HEADERS),
        "weeks": [
            [_serialize_cell(cell) for cell in week] for week in grid_rows(view.cells)
        ],
        "pending_count": view.pending_count,
        "error": view.error,
    }


def _serialize_progress(progress: CycleProgress) -> dict[str, object]:
    return {
        "cycle_id": progress.cycle_id,
        "doses_logged": progress.doses_logged,
        "total_expected_doses": progress.total_expected_doses,
        "percent_complete": progress.percent_complete,
        "current_week": progress.current_week,
        "total_weeks": progress.total_weeks,
        "segments": progress.segments,
    }
