"""Progress ledger: one completion record per (person, milestone).

Writes go through a single INSERT ... ON CONFLICT DO UPDATE so concurrent
writers never create a second row, and the date_completed rule is decided
from the row already stored, inside the same statement:

  incoming completed, stored date empty -> now
  incoming completed, stored date set   -> keep stored date
  incoming not completed                -> cleared

The derived (attendance) milestone is never written here directly; see
services/derived.py.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import case, func, null, true
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError
from app.core.time_utils import utcnow
from app.db import dialect_insert, unit_of_work
from app.models.milestone import Milestone
from app.models.progress_record import ProgressRecord
from app.schemas.progress import ProgressUpdate
from app.services import catalog

logger = logging.getLogger(__name__)


def get_progress(db: Session, person_id: int) -> list[ProgressRecord]:
    return (
        db.query(ProgressRecord)
        .filter(ProgressRecord.person_id == person_id)
        .order_by(ProgressRecord.stage_number)
        .all()
    )


def _fetch(db: Session, person_id: int, stage_number: int) -> ProgressRecord:
    return (
        db.query(ProgressRecord)
        .populate_existing()
        .filter(ProgressRecord.person_id == person_id)
        .filter(ProgressRecord.stage_number == stage_number)
        .one()
    )


def write_record(
    db: Session,
    person_id: int,
    stage_number: int,
    is_completed: bool,
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ProgressRecord:
    """Atomic upsert without the derived-milestone guard. Does not commit."""
    now = now or utcnow()
    table = ProgressRecord.__table__
    stmt = dialect_insert(db, ProgressRecord).values(
        person_id=person_id,
        stage_number=stage_number,
        is_completed=is_completed,
        date_completed=now if is_completed else None,
        updated_by=actor,
        updated_at=now,
    )
    excluded = stmt.excluded
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.person_id, table.c.stage_number],
        set_={
            "is_completed": excluded.is_completed,
            "date_completed": case(
                (
                    excluded.is_completed == true(),
                    func.coalesce(table.c.date_completed, excluded.date_completed),
                ),
                else_=null(),
            ),
            "updated_by": excluded.updated_by,
            "updated_at": excluded.updated_at,
        },
    )
    db.execute(stmt)
    return _fetch(db, person_id, stage_number)


def _manual_milestone(db: Session, stage_number: int) -> Milestone:
    milestone = catalog.get_milestone(db, stage_number)
    if milestone.is_derived:
        raise ForbiddenError(
            f"Milestone {stage_number} is calculated from attendance and cannot be updated directly",
            error_code="FORBIDDEN_DERIVED_MILESTONE",
        )
    return milestone


def upsert_progress(
    db: Session,
    person_id: int,
    stage_number: int,
    is_completed: bool,
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ProgressRecord:
    _manual_milestone(db, stage_number)
    with unit_of_work(db, "update progress"):
        record = write_record(db, person_id, stage_number, is_completed, actor, now)
    return record


def toggle_progress(
    db: Session,
    person_id: int,
    stage_number: int,
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ProgressRecord:
    _manual_milestone(db, stage_number)
    with unit_of_work(db, "toggle progress"):
        current = (
            db.query(ProgressRecord)
            .filter(ProgressRecord.person_id == person_id)
            .filter(ProgressRecord.stage_number == stage_number)
            .with_for_update()
            .first()
        )
        # No row yet means not completed
        is_completed = not (current.is_completed if current is not None else False)
        record = write_record(db, person_id, stage_number, is_completed, actor, now)
    return record


def bulk_upsert_progress(
    db: Session,
    person_id: int,
    entries: Sequence[ProgressUpdate],
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[ProgressRecord]:
    """All entries apply together or not at all."""
    for entry in entries:
        _manual_milestone(db, entry.stage_number)

    results: list[ProgressRecord] = []
    with unit_of_work(db, "bulk update progress"):
        for entry in entries:
            results.append(
                write_record(db, person_id, entry.stage_number, entry.is_completed, actor, now)
            )
    return results


def initialize_for_person(
    db: Session,
    person_id: int,
    catalog_snapshot: Iterable[Milestone],
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """Materialize a record for every active, non-derived milestone.

    Milestones flagged is_auto_completed_on_registration start completed.
    Existing rows are left alone. Does not commit; returns rows inserted.
    """
    now = now or utcnow()
    rows = []
    for milestone in catalog_snapshot:
        if not milestone.is_active or milestone.is_derived:
            continue
        done = bool(milestone.is_auto_completed_on_registration)
        rows.append(
            {
                "person_id": person_id,
                "stage_number": milestone.stage_number,
                "is_completed": done,
                "date_completed": now if done else None,
                "updated_by": actor,
                "updated_at": now,
            }
        )
    if not rows:
        return 0

    stmt = (
        dialect_insert(db, ProgressRecord)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["person_id", "stage_number"])
    )
    result = db.execute(stmt)
    return result.rowcount or 0
