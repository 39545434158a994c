from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class AttendanceCreate(BaseModel):
    date_attended: date
    service_type: Optional[str] = None
    notes: Optional[str] = None


class AttendanceBatchItem(AttendanceCreate):
    person_id: int


class AttendanceRead(BaseModel):
    id: int
    person_id: int
    date_attended: date
    service_type: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceRecorded(BaseModel):
    attendance: AttendanceRead
    total_count: int
    derived_completed: bool


class AttendanceDeleted(BaseModel):
    total_count: int
    derived_completed: bool


class BatchFailure(BaseModel):
    index: int
    item: Any
    reason: str


class AttendanceBatchResult(BaseModel):
    succeeded: list[AttendanceRead]
    failed: list[BatchFailure]


class AttendanceGroupStats(BaseModel):
    total_people: int
    with_attendance: int
    goal_reached: int
    average_attendance: int
