from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_caller, require_min_role
from app.core.roles import Role
from app.db import get_db
from app.schemas.milestone import MilestoneCreate, MilestoneRead, MilestoneUpdate
from app.services import catalog
from app.services.scope import Caller


router = APIRouter(prefix="/milestones", tags=["milestones"])

catalog_admin = require_min_role(Role.superadmin)


@router.get("/", response_model=list[MilestoneRead])
def list_milestones(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """Catalog in stage order; active only unless include_inactive is set."""
    if include_inactive:
        return catalog.list_all(db)
    return catalog.list_active(db)


@router.post("/", response_model=MilestoneRead, status_code=201)
def create_milestone(
    payload: MilestoneCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(catalog_admin),
):
    return catalog.create_milestone(db, payload)


@router.patch("/{stage_number}", response_model=MilestoneRead)
def update_milestone(
    stage_number: int,
    payload: MilestoneUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(catalog_admin),
):
    return catalog.update_milestone(db, stage_number, payload)


@router.post("/{stage_number}/activate", response_model=MilestoneRead)
def activate_milestone(
    stage_number: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(catalog_admin),
):
    return catalog.activate(db, stage_number)


@router.post("/{stage_number}/deactivate", response_model=MilestoneRead)
def deactivate_milestone(
    stage_number: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(catalog_admin),
):
    return catalog.deactivate(db, stage_number)
