"""Shared route dependencies: who is calling and what they asked to see.

Identity is established upstream; the gateway forwards the authenticated
user id as the X-User-Id header. Role and assignment always come from the
user directory, never from the request.
"""
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.roles import Role
from app.db import get_db
from app.models.user import User
from app.services.scope import Caller, RequestedFilters


def get_current_user(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise UnauthorizedError()
    user = db.get(User, x_user_id)
    if user is None:
        raise UnauthorizedError("Unknown user")
    if user.role not in {r.value for r in Role}:
        raise ForbiddenError("Unknown role")
    return user


def get_caller(user: User = Depends(get_current_user)) -> Caller:
    return Caller.from_user(user)


def require_min_role(minimum: Role):
    """
    Dependency factory for "this role or higher" checks.

    Usage:
        def endpoint(caller: Caller = Depends(require_min_role(Role.superadmin))):
    """

    def role_checker(caller: Caller = Depends(get_caller)) -> Caller:
        if not caller.role.at_least(minimum):
            raise ForbiddenError(f"Insufficient permissions. Required: {minimum.value} or higher")
        return caller

    return role_checker


def requested_filters(
    group_id: Optional[int] = Query(None),
    group_name: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
) -> RequestedFilters:
    return RequestedFilters(group_id=group_id, group_name=group_name, year=year)
