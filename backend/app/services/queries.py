"""Progress summaries for people and groups.

Percentages are always computed against the active catalog:

  completion  = round(100 * completed active milestones / active milestones)
  attendance  = min(100, round(100 * attendance count / attendance goal))
  overall     = round(100 * sum(completed) / (people * active milestones))

Every denominator of zero yields 0%.
"""
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from app.core.progress_math import attendance_percent, percent
from app.models.attendance_record import AttendanceRecord
from app.models.milestone import Milestone
from app.models.person import Person
from app.models.progress_record import ProgressRecord
from app.schemas.person import (
    MilestoneStat,
    PersonProgress,
    PersonWithProgress,
    ProgressSummary,
)
from app.schemas.progress import ProgressEntry
from app.services import catalog
from app.services.people import to_person_read
from app.services.scope import EffectiveFilter, get_person_in_scope, people_query


def build_entries(
    active: Sequence[Milestone], records: Iterable[ProgressRecord]
) -> list[ProgressEntry]:
    """One entry per active milestone; a missing record reads as not completed."""
    by_stage = {r.stage_number: r for r in records}
    entries = []
    for m in active:
        record = by_stage.get(m.stage_number)
        entries.append(
            ProgressEntry(
                stage_number=m.stage_number,
                name=m.name,
                short_label=m.short_label,
                is_derived=m.is_derived,
                is_completed=bool(record and record.is_completed),
                date_completed=record.date_completed if record is not None else None,
            )
        )
    return entries


def _records_by_person(db: Session, person_ids: list[int]) -> dict[int, list[ProgressRecord]]:
    grouped: dict[int, list[ProgressRecord]] = defaultdict(list)
    if not person_ids:
        return grouped
    rows = db.query(ProgressRecord).filter(ProgressRecord.person_id.in_(person_ids)).all()
    for r in rows:
        grouped[r.person_id].append(r)
    return grouped


def _attendance_counts(db: Session, person_ids: list[int]) -> dict[int, int]:
    if not person_ids:
        return {}
    return dict(
        db.query(AttendanceRecord.person_id, func.count(AttendanceRecord.id))
        .filter(AttendanceRecord.person_id.in_(person_ids))
        .group_by(AttendanceRecord.person_id)
        .all()
    )


def _search(query: Query, search: Optional[str]) -> Query:
    """Case-insensitive substring match on first name, last name or phone."""
    if not search:
        return query
    pattern = f"%{search.strip()}%"
    return query.filter(
        or_(
            Person.first_name.ilike(pattern),
            Person.last_name.ilike(pattern),
            Person.phone_number.like(pattern),
        )
    )


def _people_in_scope(
    db: Session,
    scope: EffectiveFilter,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Person]:
    query = _search(people_query(db, scope), search).order_by(
        Person.first_name.asc(), Person.last_name.asc(), Person.id.asc()
    )
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_people(db: Session, scope: EffectiveFilter, search: Optional[str] = None) -> int:
    return _search(people_query(db, scope), search).count()


def list_people_with_progress(
    db: Session,
    scope: EffectiveFilter,
    attendance_goal: int,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[PersonWithProgress]:
    people = _people_in_scope(db, scope, search=search, limit=limit, offset=offset)
    ids = [p.id for p in people]
    active = catalog.list_active(db)
    records = _records_by_person(db, ids)
    attendance = _attendance_counts(db, ids)

    results: list[PersonWithProgress] = []
    for person in people:
        entries = build_entries(active, records.get(person.id, []))
        completed = sum(1 for e in entries if e.is_completed)
        count = attendance.get(person.id, 0)
        results.append(
            PersonWithProgress(
                **to_person_read(person).model_dump(),
                progress=entries,
                completed_stages=completed,
                completion_percentage=percent(completed, len(active)),
                attendance_count=count,
                attendance_percentage=attendance_percent(count, attendance_goal),
            )
        )
    return results


def get_person_progress(
    db: Session, scope: EffectiveFilter, person_id: int, attendance_goal: int
) -> PersonProgress:
    person = get_person_in_scope(db, scope, person_id)
    active = catalog.list_active(db)
    records = _records_by_person(db, [person.id]).get(person.id, [])
    entries = build_entries(active, records)
    completed = sum(1 for e in entries if e.is_completed)
    count = _attendance_counts(db, [person.id]).get(person.id, 0)
    return PersonProgress(
        person=to_person_read(person),
        progress=entries,
        completed_stages=completed,
        completion_percentage=percent(completed, len(active)),
        attendance_count=count,
        attendance_percentage=attendance_percent(count, attendance_goal),
    )


def summarize(completed_counts: Sequence[int], active_count: int) -> tuple[int, int, int, int]:
    """(total, completed_all, in_progress, overall_progress) for per-person completion counts."""
    total = len(completed_counts)
    completed_all = sum(1 for c in completed_counts if active_count > 0 and c >= active_count)
    overall = percent(sum(completed_counts), total * active_count)
    return total, completed_all, total - completed_all, overall


def group_progress_summary(db: Session, scope: EffectiveFilter) -> ProgressSummary:
    people = _people_in_scope(db, scope)
    ids = [p.id for p in people]
    active = catalog.list_active(db)
    active_stages = {m.stage_number for m in active}
    records = _records_by_person(db, ids)

    per_person: list[int] = []
    per_stage: dict[int, int] = defaultdict(int)
    for person in people:
        done = {
            r.stage_number
            for r in records.get(person.id, [])
            if r.is_completed and r.stage_number in active_stages
        }
        per_person.append(len(done))
        for stage in done:
            per_stage[stage] += 1

    total, completed_all, in_progress, overall = summarize(per_person, len(active))
    return ProgressSummary(
        total=total,
        completed_all=completed_all,
        in_progress=in_progress,
        total_active_milestones=len(active),
        overall_progress=overall,
        milestone_stats=[
            MilestoneStat(
                stage_number=m.stage_number,
                name=m.name,
                completed_count=per_stage.get(m.stage_number, 0),
                percentage=percent(per_stage.get(m.stage_number, 0), total),
            )
            for m in active
        ],
    )
