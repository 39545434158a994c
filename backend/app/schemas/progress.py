from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProgressRecordRead(BaseModel):
    person_id: int
    stage_number: int
    is_completed: bool
    date_completed: Optional[datetime] = None
    updated_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ProgressUpdate(BaseModel):
    stage_number: int
    is_completed: bool


class ProgressEntry(BaseModel):
    """One cell of a person's milestone grid, ordered by the active catalog."""

    stage_number: int
    name: str
    short_label: Optional[str] = None
    is_derived: bool = False
    is_completed: bool = False
    date_completed: Optional[datetime] = None
