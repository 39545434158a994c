import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import DuplicateKeyError, NotFoundError
from app.db import unit_of_work
from app.models.group import Group
from app.models.person import Person
from app.schemas.group import GroupCreate, GroupRead
from app.services.scope import EffectiveFilter, groups_query

logger = logging.getLogger(__name__)


def list_groups(
    db: Session, scope: EffectiveFilter, include_archived: bool = False
) -> list[GroupRead]:
    """Groups in scope with member counts, newest year first."""
    query = groups_query(db, scope)
    if not include_archived:
        query = query.filter(Group.archived.is_(False))
    groups = query.order_by(Group.year.desc(), Group.name.asc()).all()
    if not groups:
        return []

    counts = dict(
        db.query(Person.group_id, func.count(Person.id))
        .filter(Person.group_id.in_([g.id for g in groups]))
        .group_by(Person.group_id)
        .all()
    )
    results: list[GroupRead] = []
    for g in groups:
        item = GroupRead.model_validate(g)
        item.member_count = counts.get(g.id, 0)
        results.append(item)
    return results


def available_years(db: Session, scope: EffectiveFilter) -> list[int]:
    """Years the caller can switch between; ignores the scope's own year bound."""
    rows = (
        groups_query(db, scope.without_year())
        .with_entities(Group.year)
        .distinct()
        .order_by(Group.year.desc())
        .all()
    )
    return [year for (year,) in rows]


def create_group(db: Session, payload: GroupCreate) -> Group:
    exists = (
        db.query(Group)
        .filter(Group.name == payload.name)
        .filter(Group.year == payload.year)
        .first()
    )
    conflict = f"Group {payload.name} {payload.year} already exists"
    if exists is not None:
        raise DuplicateKeyError(conflict)

    group = Group(**payload.model_dump())
    with unit_of_work(db, "create group", conflict=conflict):
        db.add(group)
    db.refresh(group)
    logger.info("Created group %s (%s %s)", group.id, group.name, group.year)
    return group


def set_archived(db: Session, group_id: int, archived: bool) -> Group:
    group: Optional[Group] = db.get(Group, group_id)
    if group is None:
        raise NotFoundError("Group", group_id)
    with unit_of_work(db, "archive group" if archived else "unarchive group"):
        group.archived = archived
    db.refresh(group)
    logger.info("Group %s archived=%s", group_id, archived)
    return group


def clone_previous_year(db: Session, target_year: int) -> tuple[list[Group], list[str]]:
    """Copy every non-archived group of `target_year - 1` into `target_year`.

    Names already present in the target year are skipped and reported; the
    rest are created together in one transaction.
    """
    source_year = target_year - 1
    sources = (
        db.query(Group)
        .filter(Group.year == source_year)
        .filter(Group.archived.is_(False))
        .order_by(Group.name.asc())
        .all()
    )
    existing = {name for (name,) in db.query(Group.name).filter(Group.year == target_year).all()}

    cloned: list[Group] = []
    errors: list[str] = []
    with unit_of_work(db, "clone groups", conflict=f"Groups for {target_year} changed while cloning"):
        for source in sources:
            if source.name in existing:
                errors.append(f'Group "{source.name}" already exists for {target_year}')
                continue
            group = Group(name=source.name, year=target_year, description=source.description)
            db.add(group)
            cloned.append(group)

    for group in cloned:
        db.refresh(group)
    logger.info(
        "Cloned %s groups from %s into %s (%s skipped)", len(cloned), source_year, target_year, len(errors)
    )
    return cloned, errors
