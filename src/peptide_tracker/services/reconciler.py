"""Merge expanded dose instances with persisted status overrides."""

import hashlib
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date

from peptide_tracker.domain.doses import DoseInstance, DoseRecord, DoseStatus

Backfill = Callable[[DoseInstance], DoseStatus | None]

DEMO_LOGGED_RATIO = 0.8


def reconcile(
    expanded: Iterable[DoseInstance],
    records: Iterable[DoseRecord],
    *,
    backfill: Backfill | None = None,
) -> list[DoseInstance]:
    """Apply persisted statuses to expanded instances.

    A record flagged as deleted removes its instance. Instances without a
    record keep ``scheduled`` unless ``backfill`` supplies a status.
    """
    by_id = {record.id: record for record in records}
    result: list[DoseInstance] = []
    for instance in expanded:
        record = by_id.get(instance.id)
        if record is not None:
            if record.deleted:
                continue
            status = record.status
        else:
            status = (backfill(instance) if backfill else None) or DoseStatus.SCHEDULED
        if status != instance.status:
            instance = replace(instance, status=status)
        result.append(instance)
    return result


def demo_backfill(today: date) -> Backfill:
    """Return a backfill that gives past instances a stable pseudo-history.

    The status is a pure function of the instance id, so re-rendering the
    same date always shows the same result.
    """

    def _status(instance: DoseInstance) -> DoseStatus | None:
        if instance.scheduled_date >= today:
            return None
        digest = hashlib.sha256(instance.id.encode("utf-8")).digest()
        bucket = int.from_bytes(digest[:4], "big") / 0xFFFFFFFF
        if bucket < DEMO_LOGGED_RATIO:
            return DoseStatus.LOGGED
        return DoseStatus.MISSED

    return _status
