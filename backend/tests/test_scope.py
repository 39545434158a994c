from app.core.roles import Role
from app.services.scope import (
    Assignment,
    Caller,
    EffectiveFilter,
    RequestedFilters,
    people_query,
    resolve_scope,
)

G1 = Assignment(group_id=1, group_name="January", year=2024)


def test_role_order():
    assert Role.leader < Role.admin < Role.leadpastor < Role.superadmin
    assert Role.superadmin.at_least(Role.admin)
    assert not Role.leader.at_least(Role.admin)


def test_leader_request_is_ignored():
    scope = resolve_scope(Role.leader, G1, RequestedFilters(group_id=2, group_name="February", year=2023))
    assert scope == EffectiveFilter(group_id=1, group_name="January", year=2024)


def test_leader_without_assignment_sees_nothing():
    scope = resolve_scope(Role.leader, None, RequestedFilters(group_id=2))
    assert scope.deny_all
    assert not scope.unbounded


def test_admin_keeps_group_name_and_may_pick_year():
    asked = resolve_scope(Role.admin, G1, RequestedFilters(group_name="February", year=2023))
    assert asked == EffectiveFilter(group_name="January", year=2023)

    default = resolve_scope(Role.admin, G1, RequestedFilters())
    assert default == EffectiveFilter(group_name="January", year=2024)


def test_admin_without_group_name_sees_nothing():
    assert resolve_scope(Role.admin, Assignment(), RequestedFilters()).deny_all


def test_senior_roles_pass_request_through():
    requested = RequestedFilters(group_id=2, group_name="February", year=2023)
    for role in (Role.leadpastor, Role.superadmin):
        assert resolve_scope(role, G1, requested) == EffectiveFilter(
            group_id=2, group_name="February", year=2023
        )
    assert resolve_scope(Role.superadmin, None, None).unbounded


def test_admin_target_scope_spans_years():
    caller = Caller(user_id=1, role=Role.admin, assignment=G1)
    assert caller.scope() == EffectiveFilter(group_name="January", year=2024)
    assert caller.target_scope() == EffectiveFilter(group_name="January")


def test_people_query_matches_group_name_fallback(db, factory):
    jan = factory.group("January", 2024)
    feb = factory.group("February", 2024)
    in_group = factory.person(jan)
    by_name = factory.person(group_name="January")
    factory.person(feb)

    ids = {p.id for p in people_query(db, EffectiveFilter(group_name="January")).all()}
    assert ids == {in_group.id, by_name.id}
    assert people_query(db, EffectiveFilter.deny()).all() == []
