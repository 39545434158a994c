from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import ForbiddenError, NotFoundError
from app.db import SessionLocal
from app.models.progress_record import ProgressRecord
from app.schemas.progress import ProgressUpdate
from app.services import catalog, progress

T1 = datetime(2024, 1, 7, 10, 0, tzinfo=timezone.utc)


def _naive(dt):
    return dt.replace(tzinfo=None) if dt is not None else None


def test_completing_twice_keeps_one_row_and_first_date(db, factory):
    factory.catalog()
    person = factory.person()

    first = progress.upsert_progress(db, person.id, 2, True, now=T1)
    first_date = _naive(first.date_completed)
    second = progress.upsert_progress(db, person.id, 2, True, now=T1 + timedelta(hours=1))

    rows = db.query(ProgressRecord).filter_by(person_id=person.id, stage_number=2).all()
    assert len(rows) == 1
    assert second.is_completed is True
    assert first_date == _naive(T1)
    assert _naive(second.date_completed) == _naive(T1)


def test_uncomplete_clears_date_and_recomplete_stamps_new_one(db, factory):
    factory.catalog()
    person = factory.person()
    t2 = T1 + timedelta(days=1)
    t3 = T1 + timedelta(days=2)

    progress.upsert_progress(db, person.id, 3, True, now=T1)
    cleared = progress.upsert_progress(db, person.id, 3, False, now=t2)
    assert cleared.is_completed is False
    assert cleared.date_completed is None

    again = progress.upsert_progress(db, person.id, 3, True, now=t3)
    assert again.is_completed is True
    assert _naive(again.date_completed) == _naive(t3)


def test_records_actor_and_update_time(db, factory):
    factory.catalog()
    person = factory.person()
    record = progress.upsert_progress(db, person.id, 2, False, actor=42, now=T1)
    assert record.updated_by == 42
    assert _naive(record.updated_at) == _naive(T1)


def test_derived_milestone_cannot_be_written_manually(db, factory):
    factory.catalog()
    person = factory.person()
    with pytest.raises(ForbiddenError) as exc:
        progress.upsert_progress(db, person.id, 18, True)
    assert exc.value.error_code == "FORBIDDEN_DERIVED_MILESTONE"
    assert progress.get_progress(db, person.id) == []


def test_unknown_stage_is_not_found(db, factory):
    factory.catalog()
    person = factory.person()
    with pytest.raises(NotFoundError):
        progress.upsert_progress(db, person.id, 42, True)


def test_toggle_without_record_completes(db, factory):
    factory.catalog()
    person = factory.person()
    first = progress.toggle_progress(db, person.id, 2, now=T1)
    assert first.is_completed is True
    second = progress.toggle_progress(db, person.id, 2, now=T1)
    assert second.is_completed is False
    assert second.date_completed is None


def test_bulk_update_rejects_everything_when_one_entry_is_derived(db, factory):
    factory.catalog()
    person = factory.person()
    entries = [
        ProgressUpdate(stage_number=2, is_completed=True),
        ProgressUpdate(stage_number=18, is_completed=True),
    ]
    with pytest.raises(ForbiddenError):
        progress.bulk_upsert_progress(db, person.id, entries)
    assert progress.get_progress(db, person.id) == []


def test_bulk_update_applies_all_entries(db, factory):
    factory.catalog()
    person = factory.person()
    entries = [
        ProgressUpdate(stage_number=2, is_completed=True),
        ProgressUpdate(stage_number=3, is_completed=False),
    ]
    records = progress.bulk_upsert_progress(db, person.id, entries, now=T1)
    assert [(r.stage_number, r.is_completed) for r in records] == [(2, True), (3, False)]


def test_initialize_materializes_active_manual_milestones(db, factory):
    milestones = factory.catalog()
    factory.milestone(4, "Retired", is_active=False)
    person = factory.person()

    inserted = progress.initialize_for_person(db, person.id, catalog.list_active(db), now=T1)
    db.commit()

    assert inserted == 3
    records = progress.get_progress(db, person.id)
    assert [r.stage_number for r in records] == [1, 2, 3]
    assert records[0].is_completed is True
    assert _naive(records[0].date_completed) == _naive(T1)
    assert not any(r.is_completed for r in records[1:])
    assert len(milestones) == 4


def test_initialize_leaves_existing_records_alone(db, factory):
    factory.catalog()
    person = factory.person()
    progress.upsert_progress(db, person.id, 2, True, now=T1)

    inserted = progress.initialize_for_person(db, person.id, catalog.list_active(db))
    db.commit()

    assert inserted == 2
    record = db.query(ProgressRecord).filter_by(person_id=person.id, stage_number=2).one()
    assert record.is_completed is True


def test_first_completion_wins_across_sessions(db, factory):
    factory.catalog()
    person_id = factory.person().id
    other = SessionLocal()
    try:
        # Second writer loads its view before the first one commits
        assert progress.get_progress(other, person_id) == []

        progress.write_record(db, person_id, 2, True, actor=1, now=T1)
        db.commit()

        late = progress.write_record(other, person_id, 2, True, actor=2, now=T1 + timedelta(minutes=5))
        other.commit()
        assert late.updated_by == 2
    finally:
        other.close()

    db.expire_all()
    rows = db.query(ProgressRecord).filter_by(person_id=person_id, stage_number=2).all()
    assert len(rows) == 1
    assert rows[0].is_completed is True
    assert _naive(rows[0].date_completed) == _naive(T1)
    assert rows[0].updated_by == 2
