from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from app.models.progress_record import ProgressRecord
from app.schemas.attendance import AttendanceBatchItem, AttendanceCreate
from app.services import attendance
from app.services.attendance import AttendanceRules, validate_attendance_date
from app.services.scope import EffectiveFilter

from conftest import auth, sundays

GOAL = 26
FIRST_SUNDAY = date(2024, 1, 7)


def _derived_record(db, person_id):
    db.expire_all()
    return db.query(ProgressRecord).filter_by(person_id=person_id, stage_number=18).first()


def test_duplicate_date_is_rejected_and_count_stays_one(db, factory):
    factory.catalog()
    person = factory.person()
    payload = AttendanceCreate(date_attended=FIRST_SUNDAY)

    outcome = attendance.record_attendance(db, person.id, payload, GOAL)
    assert outcome.total_count == 1

    with pytest.raises(DuplicateKeyError):
        attendance.record_attendance(db, person.id, payload, GOAL)
    assert attendance.count_for_person(db, person.id) == 1


def test_reaching_goal_completes_derived_milestone(db, factory):
    factory.catalog()
    person = factory.person()
    days = sundays(FIRST_SUNDAY, GOAL)

    for d in days[:-1]:
        outcome = attendance.record_attendance(db, person.id, AttendanceCreate(date_attended=d), GOAL)
        assert outcome.derived_completed is False
    assert _derived_record(db, person.id) is None

    outcome = attendance.record_attendance(db, person.id, AttendanceCreate(date_attended=days[-1]), GOAL)
    assert outcome.total_count == GOAL
    assert outcome.derived_completed is True
    assert _derived_record(db, person.id).is_completed is True


def test_derived_milestone_stays_completed_after_attendance_is_removed(db, factory):
    factory.catalog()
    person = factory.person()
    for d in sundays(FIRST_SUNDAY, 3):
        attendance.record_attendance(db, person.id, AttendanceCreate(date_attended=d), 3)
    completed_at = _derived_record(db, person.id).date_completed

    records = attendance.list_for_person(db, person.id)
    total, completed = attendance.delete_attendance(db, person.id, records[0].id, 3)
    assert total == 2
    assert completed is True

    record = _derived_record(db, person.id)
    assert record.is_completed is True
    assert record.date_completed == completed_at


def test_without_derived_milestone_attendance_still_counts(db, factory):
    factory.milestone(1, "Registered")
    person = factory.person()
    outcome = attendance.record_attendance(db, person.id, AttendanceCreate(date_attended=FIRST_SUNDAY), 1)
    assert outcome.total_count == 1
    assert outcome.derived_completed is False


def test_delete_unknown_attendance_is_not_found(db, factory):
    person = factory.person()
    with pytest.raises(NotFoundError):
        attendance.delete_attendance(db, person.id, 999, GOAL)


def test_batch_reports_duplicate_and_records_the_rest(db, factory):
    factory.catalog()
    group = factory.group()
    people = [factory.person(group) for _ in range(5)]
    attendance.record_attendance(db, people[2].id, AttendanceCreate(date_attended=FIRST_SUNDAY), GOAL)

    items = [AttendanceBatchItem(person_id=p.id, date_attended=FIRST_SUNDAY) for p in people]
    succeeded, failed = attendance.record_attendance_batch(db, EffectiveFilter(), items, GOAL)

    assert len(succeeded) == 4
    assert len(failed) == 1
    assert failed[0].index == 2
    assert failed[0].reason.startswith("DUPLICATE_KEY")
    assert failed[0].item["person_id"] == people[2].id
    assert all(attendance.count_for_person(db, p.id) == 1 for p in people)


def test_batch_rejects_people_outside_scope(db, factory):
    factory.catalog()
    mine, other = factory.group("January"), factory.group("February")
    inside, outside = factory.person(mine), factory.person(other)

    items = [
        AttendanceBatchItem(person_id=inside.id, date_attended=FIRST_SUNDAY),
        AttendanceBatchItem(person_id=outside.id, date_attended=FIRST_SUNDAY),
    ]
    succeeded, failed = attendance.record_attendance_batch(
        db, EffectiveFilter(group_id=mine.id), items, GOAL
    )

    assert [r.person_id for r in succeeded] == [inside.id]
    assert failed[0].index == 1
    assert failed[0].reason.startswith("NOT_FOUND")
    assert attendance.count_for_person(db, outside.id) == 0


def test_batch_rejects_archived_group(db, factory):
    group = factory.group(archived=True)
    person = factory.person(group)
    items = [AttendanceBatchItem(person_id=person.id, date_attended=FIRST_SUNDAY)]
    succeeded, failed = attendance.record_attendance_batch(db, EffectiveFilter(), items, GOAL)
    assert succeeded == []
    assert failed[0].reason.startswith("GROUP_ARCHIVED")


def test_group_stats(db, factory):
    factory.catalog()
    group = factory.group()
    busy, casual = factory.person(group), factory.person(group)
    factory.person(group)
    for d in sundays(FIRST_SUNDAY, 3):
        attendance.record_attendance(db, busy.id, AttendanceCreate(date_attended=d), 3)
    attendance.record_attendance(db, casual.id, AttendanceCreate(date_attended=FIRST_SUNDAY), 3)

    stats = attendance.get_group_stats(db, group.id, 3)
    assert stats.total_people == 3
    assert stats.with_attendance == 2
    assert stats.goal_reached == 1
    # 4 / 3 people
    assert stats.average_attendance == 1


def test_group_stats_for_empty_group(db, factory):
    group = factory.group()
    stats = attendance.get_group_stats(db, group.id, GOAL)
    assert stats.total_people == 0
    assert stats.average_attendance == 0


def test_date_rules_off_by_default():
    validate_attendance_date(date(2024, 1, 3), AttendanceRules(), today=date(2024, 6, 1))


def test_sundays_only_rule():
    rules = AttendanceRules(sundays_only=True)
    validate_attendance_date(FIRST_SUNDAY, rules, today=FIRST_SUNDAY)
    with pytest.raises(ValidationError) as exc:
        validate_attendance_date(FIRST_SUNDAY + timedelta(days=1), rules, today=FIRST_SUNDAY + timedelta(days=2))
    assert exc.value.error_code == "VALIDATION_ERROR_DATE_ATTENDED"


def test_late_and_future_dates_rejected():
    rules = AttendanceRules(max_days_late=7)
    today = date(2024, 1, 20)
    validate_attendance_date(date(2024, 1, 14), rules, today=today)
    with pytest.raises(ValidationError):
        validate_attendance_date(date(2024, 1, 7), rules, today=today)
    with pytest.raises(ValidationError):
        validate_attendance_date(date(2024, 1, 21), rules, today=today)


def test_archived_person_cannot_take_attendance_over_http(client, factory):
    factory.catalog()
    group = factory.group(archived=True)
    person = factory.person(group)
    user = factory.user("superadmin")

    r = client.post(
        f"/attendance/{person.id}", json={"date_attended": "2024-01-07"}, headers=auth(user)
    )
    assert r.status_code == 403
    assert r.json()["error_code"] == "GROUP_ARCHIVED"


def test_batch_storage_failure_on_one_item_does_not_stop_the_rest(db, factory, monkeypatch):
    factory.catalog()
    group = factory.group()
    people = [factory.person(group) for _ in range(3)]
    broken_id = people[1].id
    lookup = attendance.get_writable_person

    def flaky_lookup(session, scope, person_id):
        if person_id == broken_id:
            raise OperationalError("SELECT people", {}, Exception("connection reset"))
        return lookup(session, scope, person_id)

    monkeypatch.setattr(attendance, "get_writable_person", flaky_lookup)
    items = [AttendanceBatchItem(person_id=p.id, date_attended=FIRST_SUNDAY) for p in people]
    succeeded, failed = attendance.record_attendance_batch(db, EffectiveFilter(), items, GOAL)

    assert [r.person_id for r in succeeded] == [people[0].id, people[2].id]
    assert [f.index for f in failed] == [1]
    assert failed[0].reason.startswith("INTERNAL")
    assert attendance.count_for_person(db, broken_id) == 0
