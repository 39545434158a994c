from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_caller, require_min_role, requested_filters
from app.core.roles import Role
from app.db import get_db
from app.schemas.group import GroupCloneRequest, GroupCloneResult, GroupCreate, GroupList, GroupRead
from app.services import groups
from app.services.scope import Caller, RequestedFilters


router = APIRouter(prefix="/groups", tags=["groups"])

group_admin = require_min_role(Role.leadpastor)
year_admin = require_min_role(Role.superadmin)


@router.get("/", response_model=GroupList)
def list_groups(
    include_archived: bool = Query(False),
    filters: RequestedFilters = Depends(requested_filters),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    scope = caller.scope(filters)
    return GroupList(
        groups=groups.list_groups(db, scope, include_archived=include_archived),
        available_years=groups.available_years(db, scope),
    )


@router.post("/", response_model=GroupRead, status_code=201)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(group_admin),
):
    return groups.create_group(db, payload)


@router.post("/clone-year", response_model=GroupCloneResult)
def clone_year(
    payload: GroupCloneRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(year_admin),
):
    target_year = payload.target_year or date.today().year
    cloned, errors = groups.clone_previous_year(db, target_year)
    return GroupCloneResult(
        cloned=len(cloned),
        source_year=target_year - 1,
        target_year=target_year,
        groups=[GroupRead.model_validate(g) for g in cloned],
        errors=errors,
    )


@router.post("/{group_id}/archive", response_model=GroupRead)
def archive_group(
    group_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(group_admin),
):
    return groups.set_archived(db, group_id, True)


@router.post("/{group_id}/unarchive", response_model=GroupRead)
def unarchive_group(
    group_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(group_admin),
):
    return groups.set_archived(db, group_id, False)
