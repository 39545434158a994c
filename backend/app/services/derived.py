"""Derived (attendance) milestone calculator.

Completion is one-way: reaching the goal completes the milestone, falling
back below it later (deleted attendance) leaves it completed.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.attendance_record import AttendanceRecord
from app.models.progress_record import ProgressRecord
from app.services import catalog
from app.services.progress import write_record

logger = logging.getLogger(__name__)


def _attendance_count(db: Session, person_id: int) -> int:
    return (
        db.query(func.count(AttendanceRecord.id))
        .filter(AttendanceRecord.person_id == person_id)
        .scalar()
        or 0
    )


def recompute(
    db: Session,
    person_id: int,
    attendance_goal: int,
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Push the attendance-derived state into the progress ledger.

    Runs inside the caller's transaction and does not commit. Returns whether
    the derived milestone is completed for the person afterwards.
    """
    milestone = catalog.get_derived(db)
    if milestone is None:
        return False

    count = _attendance_count(db, person_id)
    if count >= attendance_goal:
        record = write_record(db, person_id, milestone.stage_number, True, actor, now)
        logger.info(
            "Derived milestone %s completed for person %s (%s/%s)",
            milestone.stage_number,
            person_id,
            count,
            attendance_goal,
        )
        return bool(record.is_completed)

    existing = (
        db.query(ProgressRecord.is_completed)
        .filter(ProgressRecord.person_id == person_id)
        .filter(ProgressRecord.stage_number == milestone.stage_number)
        .scalar()
    )
    return bool(existing)
