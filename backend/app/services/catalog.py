"""Milestone catalog.

Ordering is always ascending stage_number; that order is the column order of
every milestone grid and the set of active milestones is the denominator of
every completion percentage.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from app.db import unit_of_work
from app.models.milestone import Milestone
from app.schemas.milestone import MilestoneCreate, MilestoneUpdate

logger = logging.getLogger(__name__)


def list_active(db: Session) -> list[Milestone]:
    return (
        db.query(Milestone)
        .filter(Milestone.is_active.is_(True))
        .order_by(Milestone.stage_number)
        .all()
    )


def list_all(db: Session) -> list[Milestone]:
    return db.query(Milestone).order_by(Milestone.stage_number).all()


def get_milestone(db: Session, stage_number: int) -> Milestone:
    milestone = db.get(Milestone, stage_number)
    if milestone is None:
        raise NotFoundError("Milestone", stage_number)
    return milestone


def get_derived(db: Session) -> Optional[Milestone]:
    """The attendance milestone, if the catalog has one."""
    return (
        db.query(Milestone)
        .filter(Milestone.is_derived.is_(True))
        .order_by(Milestone.stage_number)
        .first()
    )


def _ensure_single_derived(db: Session, stage_number: int) -> None:
    existing = get_derived(db)
    if existing is not None and existing.stage_number != stage_number:
        raise ValidationError(
            f"Milestone {existing.stage_number} is already the derived milestone",
            field="is_derived",
        )


def create_milestone(db: Session, payload: MilestoneCreate) -> Milestone:
    if db.get(Milestone, payload.stage_number) is not None:
        raise DuplicateKeyError(f"Milestone {payload.stage_number} already exists")
    if payload.is_derived:
        _ensure_single_derived(db, payload.stage_number)

    milestone = Milestone(**payload.model_dump())
    conflict = f"Milestone {payload.stage_number} already exists"
    with unit_of_work(db, "create milestone", conflict=conflict):
        db.add(milestone)
    db.refresh(milestone)
    logger.info("Created milestone %s (%s)", milestone.stage_number, milestone.name)
    return milestone


def update_milestone(db: Session, stage_number: int, payload: MilestoneUpdate) -> Milestone:
    milestone = get_milestone(db, stage_number)
    changes = payload.model_dump(exclude_unset=True)
    changes.pop("stage_number", None)
    if changes.get("is_derived"):
        _ensure_single_derived(db, stage_number)

    with unit_of_work(db, "update milestone"):
        for key, value in changes.items():
            setattr(milestone, key, value)
    db.refresh(milestone)
    return milestone


def set_active(db: Session, stage_number: int, is_active: bool) -> Milestone:
    milestone = get_milestone(db, stage_number)
    with unit_of_work(db, "activate milestone" if is_active else "deactivate milestone"):
        milestone.is_active = is_active
    db.refresh(milestone)
    logger.info("Milestone %s active=%s", stage_number, is_active)
    return milestone


def activate(db: Session, stage_number: int) -> Milestone:
    return set_active(db, stage_number, True)


def deactivate(db: Session, stage_number: int) -> Milestone:
    return set_active(db, stage_number, False)
