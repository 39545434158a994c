"""Role-scoped access resolution.

Every read or write touching people, progress or attendance goes through an
EffectiveFilter produced here. Callers hand in who they are (role plus
organizational assignment) and what they asked for; the resolver decides what
they actually get:

  leader      -> forced to their own group instance, request ignored
  admin       -> forced to their group name, year from request or assignment
  leadpastor  -> request passes through unchanged
  superadmin  -> request passes through unchanged

A leader or admin without an assignment resolves to `deny_all`, which
matches nothing. Access never widens to unbounded.
"""
from dataclasses import dataclass, replace
from typing import Optional

from sqlalchemy import and_, false, or_
from sqlalchemy.orm import Query, Session

from app.core.errors import NotFoundError
from app.core.roles import Role
from app.models.group import Group
from app.models.person import Person


@dataclass(frozen=True)
class Assignment:
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class RequestedFilters:
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class EffectiveFilter:
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    year: Optional[int] = None
    deny_all: bool = False

    @classmethod
    def deny(cls) -> "EffectiveFilter":
        return cls(deny_all=True)

    @property
    def unbounded(self) -> bool:
        return not self.deny_all and self.group_id is None and self.group_name is None and self.year is None

    def without_year(self) -> "EffectiveFilter":
        return replace(self, year=None)


def resolve_scope(
    role: Role,
    assignment: Optional[Assignment],
    requested: Optional[RequestedFilters] = None,
) -> EffectiveFilter:
    role = Role(role)
    assignment = assignment or Assignment()
    requested = requested or RequestedFilters()

    if role == Role.leader:
        if assignment.group_id is None and not assignment.group_name:
            return EffectiveFilter.deny()
        return EffectiveFilter(
            group_id=assignment.group_id,
            group_name=assignment.group_name,
            year=assignment.year,
        )

    if role == Role.admin:
        if not assignment.group_name:
            return EffectiveFilter.deny()
        year = requested.year if requested.year is not None else assignment.year
        return EffectiveFilter(group_name=assignment.group_name, year=year)

    return EffectiveFilter(
        group_id=requested.group_id,
        group_name=requested.group_name,
        year=requested.year,
    )


@dataclass(frozen=True)
class Caller:
    """The authenticated user as the engine sees them."""

    user_id: Optional[int]
    role: Role
    assignment: Assignment

    @classmethod
    def from_user(cls, user) -> "Caller":
        group = user.group
        return cls(
            user_id=user.id,
            role=Role(user.role),
            assignment=Assignment(
                group_id=user.group_id,
                group_name=group.name if group is not None else None,
                year=group.year if group is not None else None,
            ),
        )

    def scope(self, requested: Optional[RequestedFilters] = None) -> EffectiveFilter:
        return resolve_scope(self.role, self.assignment, requested)

    def target_scope(self) -> EffectiveFilter:
        """Scope for operations addressed by id.

        The admin year default only narrows listings; by id an admin reaches
        every year of their group name.
        """
        scope = self.scope()
        if self.role == Role.admin:
            return scope.without_year()
        return scope


def people_query(db: Session, scope: EffectiveFilter) -> Query:
    """People visible under `scope`, with their group outer-joined."""
    query = db.query(Person).outerjoin(Group, Person.group_id == Group.id)
    if scope.deny_all:
        return query.filter(false())
    if scope.group_id is not None:
        query = query.filter(Person.group_id == scope.group_id)
    if scope.group_name is not None:
        # group_name on the person is only a fallback for people without a group row
        query = query.filter(
            or_(
                Group.name == scope.group_name,
                and_(Person.group_id.is_(None), Person.group_name == scope.group_name),
            )
        )
    if scope.year is not None:
        query = query.filter(Group.year == scope.year)
    return query


def groups_query(db: Session, scope: EffectiveFilter) -> Query:
    query = db.query(Group)
    if scope.deny_all:
        return query.filter(false())
    if scope.group_id is not None:
        query = query.filter(Group.id == scope.group_id)
    if scope.group_name is not None:
        query = query.filter(Group.name == scope.group_name)
    if scope.year is not None:
        query = query.filter(Group.year == scope.year)
    return query


def get_person_in_scope(db: Session, scope: EffectiveFilter, person_id: int) -> Person:
    # Missing and out-of-scope look the same to the caller
    person = people_query(db, scope).filter(Person.id == person_id).first()
    if person is None:
        raise NotFoundError("Person", person_id)
    return person


def get_group_in_scope(db: Session, scope: EffectiveFilter, group_id: int) -> Group:
    group = groups_query(db, scope).filter(Group.id == group_id).first()
    if group is None:
        raise NotFoundError("Group", group_id)
    return group
