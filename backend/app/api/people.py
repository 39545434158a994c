from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.api.deps import get_caller, requested_filters
from app.core.config import settings
from app.db import get_db
from app.schemas.person import (
    BulkRegisterRequest,
    BulkRegisterResult,
    PeopleWithProgress,
    PersonCreate,
    PersonProgress,
    PersonRead,
    PersonUpdate,
    ProgressSummary,
)
from app.services import people, queries
from app.services.scope import Caller, RequestedFilters


router = APIRouter(prefix="/people", tags=["people"])


@router.get("/with-progress", response_model=PeopleWithProgress)
def list_people_with_progress(
    search: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    filters: RequestedFilters = Depends(requested_filters),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """
    People in the caller's scope, each with their milestone grid.

    Leaders always get their own group whatever they ask for:
      GET /people/with-progress?group_id=7&search=ama&limit=50
    """
    scope = caller.scope(filters)
    rows = queries.list_people_with_progress(
        db, scope, settings.attendance_goal, search=search, limit=limit, offset=offset
    )
    return PeopleWithProgress(
        people=rows, count=len(rows), total=queries.count_people(db, scope, search=search)
    )


@router.get("/summary", response_model=ProgressSummary)
def progress_summary(
    filters: RequestedFilters = Depends(requested_filters),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return queries.group_progress_summary(db, caller.scope(filters))


@router.post("/", response_model=PersonRead, status_code=201)
def register_person(
    payload: PersonCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = people.register_person(db, caller, payload)
    return people.to_person_read(person)


@router.post("/bulk", response_model=BulkRegisterResult)
def register_people_bulk(
    payload: BulkRegisterRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    succeeded, failed = people.register_people_bulk(db, caller, payload.people)
    return BulkRegisterResult(
        succeeded=[people.to_person_read(p) for p in succeeded],
        failed=failed,
    )


@router.get("/{person_id}", response_model=PersonProgress)
def get_person(
    person_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return queries.get_person_progress(db, caller.target_scope(), person_id, settings.attendance_goal)


@router.patch("/{person_id}", response_model=PersonRead)
def update_person(
    person_id: int,
    payload: PersonUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    person = people.update_person(db, caller, person_id, payload)
    return people.to_person_read(person)


@router.delete("/{person_id}", status_code=204)
def delete_person(
    person_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    people.delete_person(db, caller.target_scope(), person_id)
    return Response(status_code=204)
