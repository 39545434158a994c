"""Attendance ledger.

At most one record per (person, date). Every successful insert recomputes the
derived milestone in the same transaction, so by the time a caller sees
success the person's progress already reflects the new attendance.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    APIException,
    DuplicateKeyError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from app.core.progress_math import round_half_up
from app.core.time_utils import days_late, is_sunday
from app.db import dialect_insert, unit_of_work
from app.models.attendance_record import AttendanceRecord
from app.models.person import Person
from app.schemas.attendance import AttendanceBatchItem, AttendanceCreate, AttendanceGroupStats, BatchFailure
from app.services import derived
from app.services.people import get_writable_person
from app.services.scope import EffectiveFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceRules:
    sundays_only: bool = False
    max_days_late: Optional[int] = None

    @classmethod
    def from_settings(cls) -> "AttendanceRules":
        return cls(
            sundays_only=settings.attendance_sundays_only,
            max_days_late=settings.attendance_max_days_late,
        )


@dataclass
class AttendanceOutcome:
    record: AttendanceRecord
    total_count: int
    derived_completed: bool


def validate_attendance_date(d: date, rules: AttendanceRules, today: Optional[date] = None) -> None:
    if not rules.sundays_only and rules.max_days_late is None:
        return
    late = days_late(d, today)
    if late < 0:
        raise ValidationError("Attendance cannot be recorded for future dates", field="date_attended")
    if rules.sundays_only and not is_sunday(d):
        raise ValidationError("Attendance can only be recorded for Sundays", field="date_attended")
    if rules.max_days_late is not None and late > rules.max_days_late:
        raise ValidationError(
            f"Attendance cannot be recorded more than {rules.max_days_late} days after the service date",
            field="date_attended",
        )


def count_for_person(db: Session, person_id: int) -> int:
    return (
        db.query(func.count(AttendanceRecord.id))
        .filter(AttendanceRecord.person_id == person_id)
        .scalar()
        or 0
    )


def list_for_person(db: Session, person_id: int) -> list[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.person_id == person_id)
        .order_by(AttendanceRecord.date_attended.desc())
        .all()
    )


def record_attendance(
    db: Session,
    person_id: int,
    payload: AttendanceCreate,
    attendance_goal: int,
    actor: Optional[int] = None,
    rules: Optional[AttendanceRules] = None,
    now: Optional[datetime] = None,
) -> AttendanceOutcome:
    """Insert one attendance record and recompute the derived milestone.

    Raises DuplicateKeyError when the person already has a record for the date.
    """
    validate_attendance_date(payload.date_attended, rules or AttendanceRules())

    stmt = (
        dialect_insert(db, AttendanceRecord)
        .values(
            person_id=person_id,
            date_attended=payload.date_attended,
            service_type=payload.service_type,
            notes=payload.notes,
            recorded_by=actor,
        )
        .on_conflict_do_nothing(index_elements=["person_id", "date_attended"])
    )
    with unit_of_work(db, "record attendance"):
        result = db.execute(stmt)
        if result.rowcount == 0:
            logger.info(
                "Attendance already recorded for person %s on %s", person_id, payload.date_attended
            )
            raise DuplicateKeyError(
                f"Attendance already recorded for person {person_id} on {payload.date_attended}"
            )
        completed = derived.recompute(db, person_id, attendance_goal, actor=actor, now=now)
        total = count_for_person(db, person_id)

    record = (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.person_id == person_id)
        .filter(AttendanceRecord.date_attended == payload.date_attended)
        .one()
    )
    return AttendanceOutcome(record=record, total_count=total, derived_completed=completed)


def record_attendance_batch(
    db: Session,
    scope: EffectiveFilter,
    items: Sequence[AttendanceBatchItem],
    attendance_goal: int,
    actor: Optional[int] = None,
    rules: Optional[AttendanceRules] = None,
    now: Optional[datetime] = None,
) -> tuple[list[AttendanceRecord], list[BatchFailure]]:
    """Record each item in its own transaction.

    A duplicate, an out-of-scope person or a storage error on one item is
    reported for that item and the rest are still attempted.
    """
    succeeded: list[AttendanceRecord] = []
    failed: list[BatchFailure] = []
    for index, item in enumerate(items):
        try:
            person = get_writable_person(db, scope, item.person_id)
            outcome = record_attendance(
                db, person.id, item, attendance_goal, actor=actor, rules=rules, now=now
            )
            succeeded.append(outcome.record)
        except APIException as exc:
            failed.append(
                BatchFailure(index=index, item=item.model_dump(mode="json"), reason=exc.as_reason())
            )
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Attendance batch item %s failed", index)
            failed.append(
                BatchFailure(
                    index=index, item=item.model_dump(mode="json"), reason=InternalError().as_reason()
                )
            )

    logger.info("Attendance batch: %s recorded, %s rejected", len(succeeded), len(failed))
    return succeeded, failed


def delete_attendance(
    db: Session,
    person_id: int,
    attendance_id: int,
    attendance_goal: int,
    actor: Optional[int] = None,
    now: Optional[datetime] = None,
) -> tuple[int, bool]:
    """Remove one record. The derived milestone is recomputed but never reverted."""
    record = (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.id == attendance_id)
        .filter(AttendanceRecord.person_id == person_id)
        .first()
    )
    if record is None:
        raise NotFoundError("Attendance record", attendance_id)

    with unit_of_work(db, "delete attendance"):
        db.delete(record)
        db.flush()
        completed = derived.recompute(db, person_id, attendance_goal, actor=actor, now=now)
        total = count_for_person(db, person_id)
    return total, completed


def get_group_stats(db: Session, group_id: int, attendance_goal: int) -> AttendanceGroupStats:
    rows = (
        db.query(Person.id, func.count(AttendanceRecord.id))
        .outerjoin(AttendanceRecord, AttendanceRecord.person_id == Person.id)
        .filter(Person.group_id == group_id)
        .group_by(Person.id)
        .all()
    )
    counts = [count for _, count in rows]
    total_people = len(counts)
    return AttendanceGroupStats(
        total_people=total_people,
        with_attendance=sum(1 for c in counts if c > 0),
        goal_reached=sum(1 for c in counts if c >= attendance_goal),
        average_attendance=round_half_up(sum(counts) / total_people) if total_people else 0,
    )
