"""Person registry: registration, profile edits, bulk registration and cascading delete."""
import logging
from datetime import datetime
from typing import Optional

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import APIException, ForbiddenError, InternalError, NotFoundError, ValidationError
from app.db import unit_of_work
from app.models.group import Group
from app.models.person import Person
from app.schemas.attendance import BatchFailure
from app.schemas.person import PersonCreate, PersonRead, PersonUpdate
from app.services import catalog, progress
from app.services.scope import (
    Caller,
    EffectiveFilter,
    RequestedFilters,
    get_person_in_scope,
    groups_query,
)

logger = logging.getLogger(__name__)


def to_person_read(person: Person) -> PersonRead:
    group = person.group
    return PersonRead(
        id=person.id,
        first_name=person.first_name,
        last_name=person.last_name,
        full_name=person.full_name,
        phone_number=person.phone_number,
        gender=person.gender,
        date_of_birth=person.date_of_birth,
        residential_location=person.residential_location,
        occupation_type=person.occupation_type,
        group_id=person.group_id,
        group_name=group.name if group is not None else person.group_name,
        group_year=group.year if group is not None else None,
        created_at=person.created_at,
    )


def get_writable_person(db: Session, scope: EffectiveFilter, person_id: int) -> Person:
    """Person in scope whose group still accepts progress/attendance changes."""
    person = get_person_in_scope(db, scope, person_id)
    if person.group is not None and person.group.archived:
        raise ForbiddenError("Cannot modify records in an archived group", error_code="GROUP_ARCHIVED")
    return person


def _target_group(db: Session, scope: EffectiveFilter) -> Optional[Group]:
    if scope.deny_all:
        raise NotFoundError("Group")
    if scope.unbounded:
        return None

    query = groups_query(db, scope)
    if scope.group_id is None and scope.year is None:
        # Name only: newest instance of that name
        query = query.order_by(Group.year.desc())
    group = query.first()
    if group is None:
        raise NotFoundError("Group")
    return group


def register_person(
    db: Session,
    caller: Caller,
    payload: PersonCreate,
    now: Optional[datetime] = None,
) -> Person:
    scope = caller.scope(
        RequestedFilters(group_id=payload.group_id, group_name=payload.group_name, year=payload.year)
    )
    group = _target_group(db, scope)
    if group is not None and group.archived:
        raise ForbiddenError("Cannot register people in an archived group", error_code="GROUP_ARCHIVED")

    person = Person(
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone_number=payload.phone_number,
        gender=payload.gender,
        date_of_birth=payload.date_of_birth,
        residential_location=payload.residential_location,
        occupation_type=payload.occupation_type,
        group_id=group.id if group is not None else None,
        group_name=group.name if group is not None else payload.group_name,
    )
    with unit_of_work(db, "register person"):
        db.add(person)
        db.flush()
        progress.initialize_for_person(
            db, person.id, catalog.list_active(db), actor=caller.user_id, now=now
        )
    db.refresh(person)
    logger.info("Registered person %s in group %s", person.id, person.group_id)
    return person


def _validation_reason(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "row"
        parts.append(f"{field}: {err.get('msg')}")
    return "VALIDATION_ERROR: " + "; ".join(parts)


def register_people_bulk(
    db: Session,
    caller: Caller,
    rows: list[dict],
    now: Optional[datetime] = None,
) -> tuple[list[Person], list[BatchFailure]]:
    """Register each row on its own; one bad row never blocks the rest."""
    succeeded: list[Person] = []
    failed: list[BatchFailure] = []
    for index, row in enumerate(rows):
        try:
            payload = PersonCreate.model_validate(row)
        except pydantic.ValidationError as exc:
            failed.append(BatchFailure(index=index, item=row, reason=_validation_reason(exc)))
            continue
        try:
            succeeded.append(register_person(db, caller, payload, now=now))
        except APIException as exc:
            failed.append(BatchFailure(index=index, item=row, reason=exc.as_reason()))
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Bulk registration row %s failed", index)
            failed.append(BatchFailure(index=index, item=row, reason=InternalError().as_reason()))

    logger.info("Bulk registration: %s succeeded, %s failed", len(succeeded), len(failed))
    return succeeded, failed


def delete_person(db: Session, scope: EffectiveFilter, person_id: int) -> None:
    """Delete the person; progress and attendance go with it in the same transaction."""
    person = get_writable_person(db, scope, person_id)
    with unit_of_work(db, "delete person"):
        db.delete(person)
    logger.info("Deleted person %s", person_id)


_GROUP_FIELDS = ("group_id", "group_name", "year")
_REQUIRED_FIELDS = ("first_name", "last_name", "phone_number")


def update_person(
    db: Session,
    caller: Caller,
    person_id: int,
    payload: PersonUpdate,
) -> Person:
    """Apply a profile edit; a group change is resolved inside the caller's scope."""
    person = get_writable_person(db, caller.target_scope(), person_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in _REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be empty", field=key)

    requested = {key: changes.pop(key) for key in _GROUP_FIELDS if key in changes}
    if requested:
        group = _target_group(db, caller.scope(RequestedFilters(**requested)))
        if group is not None:
            if group.archived:
                raise ForbiddenError("Cannot move people into an archived group", error_code="GROUP_ARCHIVED")
            changes["group_id"] = group.id
            changes["group_name"] = group.name

    with unit_of_work(db, "update person"):
        for key, value in changes.items():
            setattr(person, key, value)
    db.refresh(person)
    logger.info("Updated person %s", person_id)
    return person
