from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.core.config import settings
from app.db import get_db
from app.schemas.person import PersonProgress
from app.schemas.progress import ProgressRecordRead, ProgressUpdate
from app.services import progress, queries
from app.services.people import get_writable_person
from app.services.scope import Caller


router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/{person_id}", response_model=PersonProgress)
def get_person_progress(
    person_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return queries.get_person_progress(db, caller.target_scope(), person_id, settings.attendance_goal)


@router.patch("/{person_id}", response_model=ProgressRecordRead)
def update_progress(
    person_id: int,
    payload: ProgressUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = get_writable_person(db, caller.target_scope(), person_id)
    return progress.upsert_progress(
        db, person.id, payload.stage_number, payload.is_completed, actor=caller.user_id
    )


@router.put("/{person_id}", response_model=list[ProgressRecordRead])
def bulk_update_progress(
    person_id: int,
    payload: list[ProgressUpdate],
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = get_writable_person(db, caller.target_scope(), person_id)
    return progress.bulk_upsert_progress(db, person.id, payload, actor=caller.user_id)


@router.post("/{person_id}/{stage_number}/toggle", response_model=ProgressRecordRead)
def toggle_progress(
    person_id: int,
    stage_number: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = get_writable_person(db, caller.target_scope(), person_id)
    return progress.toggle_progress(db, person.id, stage_number, actor=caller.user_id)
