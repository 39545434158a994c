from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.core.config import settings
from app.db import get_db
from app.schemas.attendance import (
    AttendanceBatchItem,
    AttendanceBatchResult,
    AttendanceCreate,
    AttendanceDeleted,
    AttendanceGroupStats,
    AttendanceRead,
    AttendanceRecorded,
)
from app.services import attendance
from app.services.attendance import AttendanceRules
from app.services.people import get_writable_person
from app.services.scope import Caller, get_group_in_scope, get_person_in_scope


router = APIRouter(prefix="/attendance", tags=["attendance"])


# Declared before /{person_id} so "batch" is not read as an id
@router.post("/batch", response_model=AttendanceBatchResult)
def record_attendance_batch(
    payload: list[AttendanceBatchItem],
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    succeeded, failed = attendance.record_attendance_batch(
        db,
        caller.target_scope(),
        payload,
        settings.attendance_goal,
        actor=caller.user_id,
        rules=AttendanceRules.from_settings(),
    )
    return AttendanceBatchResult(
        succeeded=[AttendanceRead.model_validate(r) for r in succeeded],
        failed=failed,
    )


@router.get("/groups/{group_id}/stats", response_model=AttendanceGroupStats)
def group_attendance_stats(
    group_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    group = get_group_in_scope(db, caller.target_scope(), group_id)
    return attendance.get_group_stats(db, group.id, settings.attendance_goal)


@router.post("/{person_id}", response_model=AttendanceRecorded)
def record_attendance(
    person_id: int,
    payload: AttendanceCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = get_writable_person(db, caller.target_scope(), person_id)
    outcome = attendance.record_attendance(
        db,
        person.id,
        payload,
        settings.attendance_goal,
        actor=caller.user_id,
        rules=AttendanceRules.from_settings(),
    )
    return AttendanceRecorded(
        attendance=AttendanceRead.model_validate(outcome.record),
        total_count=outcome.total_count,
        derived_completed=outcome.derived_completed,
    )


@router.get("/{person_id}", response_model=list[AttendanceRead])
def list_attendance(
    person_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = get_person_in_scope(db, caller.target_scope(), person_id)
    return attendance.list_for_person(db, person.id)


@router.delete("/{person_id}/{attendance_id}", response_model=AttendanceDeleted)
def delete_attendance(
    person_id: int,
    attendance_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = get_writable_person(db, caller.target_scope(), person_id)
    total, completed = attendance.delete_attendance(
        db, person.id, attendance_id, settings.attendance_goal, actor=caller.user_id
    )
    return AttendanceDeleted(total_count=total, derived_completed=completed)
