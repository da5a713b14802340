"""Tests for merging expanded doses with persisted records."""

from datetime import date

from peptide_tracker.domain.doses import DoseRecord, DoseStatus
from peptide_tracker.services.expander import dose_instance_id, expand
from peptide_tracker.services.reconciler import demo_backfill, reconcile


def _record(
    day: date,
    time_label: str,
    status: DoseStatus,
    *,
    deleted: bool = False,
    cycle_id: str = "cycle-1",
) -> DoseRecord:
    return DoseRecord(
        id=dose_instance_id(cycle_id, day, time_label),
        cycle_id=cycle_id,
        scheduled_date=day,
        time_label=time_label,
        status=status,
        deleted=deleted,
    )


def test_logged_record_marks_one_instance(make_cycle) -> None:
    expanded = expand(make_cycle(), date(2024, 1, 1), date(2024, 1, 3))
    records = [_record(date(2024, 1, 2), "08:00", DoseStatus.LOGGED)]

    reconciled = reconcile(expanded, records)

    statuses = [item.status for item in reconciled]
    assert statuses.count(DoseStatus.LOGGED) == 1
    assert statuses.count(DoseStatus.SCHEDULED) == 5
    logged = next(item for item in reconciled if item.status == DoseStatus.LOGGED)
    assert (logged.scheduled_date, logged.time_label) == (date(2024, 1, 2), "08:00")


def test_reconcile_is_idempotent(make_cycle) -> None:
    expanded = expand(make_cycle(), date(2024, 1, 1), date(2024, 1, 3))
    records = [
        _record(date(2024, 1, 1), "20:00", DoseStatus.MISSED),
        _record(date(2024, 1, 3), "08:00", DoseStatus.LOGGED),
    ]

    once = reconcile(expanded, records)
    twice = reconcile(once, records)

    assert once == twice


def test_logged_status_survives_wider_range(make_cycle) -> None:
    cycle = make_cycle(end_date=date(2024, 2, 29))
    records = [_record(date(2024, 1, 2), "08:00", DoseStatus.LOGGED)]
    target = dose_instance_id(cycle.id, date(2024, 1, 2), "08:00")

    narrow = reconcile(expand(cycle, date(2024, 1, 2), date(2024, 1, 2)), records)
    wide = reconcile(expand(cycle, date(2024, 1, 1), date(2024, 2, 29)), records)

    for instances in (narrow, wide):
        match = next(item for item in instances if item.id == target)
        assert match.status == DoseStatus.LOGGED


def test_deleted_record_removes_instance(make_cycle) -> None:
    expanded = expand(make_cycle(), date(2024, 1, 1), date(2024, 1, 3))
    records = [
        _record(date(2024, 1, 2), "20:00", DoseStatus.SCHEDULED, deleted=True)
    ]

    reconciled = reconcile(expanded, records)

    assert len(reconciled) == 5
    assert dose_instance_id("cycle-1", date(2024, 1, 2), "20:00") not in {
        item.id for item in reconciled
    }


def test_unmatched_records_are_ignored(make_cycle) -> None:
    expanded = expand(make_cycle(), date(2024, 1, 1), date(2024, 1, 3))
    records = [_record(date(2024, 1, 2), "08:00", DoseStatus.LOGGED, cycle_id="x")]

    reconciled = reconcile(expanded, records)

    assert all(item.status == DoseStatus.SCHEDULED for item in reconciled)


def test_demo_backfill_only_touches_the_past(make_cycle) -> None:
    cycle = make_cycle(end_date=date(2024, 1, 31))
    expanded = expand(cycle, date(2024, 1, 1), date(2024, 1, 31))
    today = date(2024, 1, 15)

    first = reconcile(expanded, [], backfill=demo_backfill(today))
    second = reconcile(expanded, [], backfill=demo_backfill(today))

    assert first == second
    for item in first:
        if item.scheduled_date < today:
            assert item.status in {DoseStatus.LOGGED, DoseStatus.MISSED}
        else:
            assert item.status == DoseStatus.SCHEDULED


def test_records_take_precedence_over_backfill(make_cycle) -> None:
    expanded = expand(make_cycle(), date(2024, 1, 1), date(2024, 1, 3))
    records = [_record(date(2024, 1, 1), "08:00", DoseStatus.SCHEDULED)]

    reconciled = reconcile(expanded, records, backfill=demo_backfill(date(2024, 2, 1)))

    assert reconciled[0].status == DoseStatus.SCHEDULED
