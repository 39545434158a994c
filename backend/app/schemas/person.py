import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import GENDERS, OCCUPATION_TYPES
from app.schemas.attendance import BatchFailure
from app.schemas.progress import ProgressEntry

_PHONE_RE = re.compile(r"^[0-9+\-\s()]+$")
_DOB_RE = re.compile(r"^(\d{2})-(\d{2})$")


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v is not None and not _PHONE_RE.match(v):
        raise ValueError("Invalid phone number format")
    return v


def _check_dob(v: Optional[str]) -> Optional[str]:
    if v in (None, ""):
        return None
    m = _DOB_RE.match(v)
    if not m:
        raise ValueError("Date of birth must be in DD-MM format (e.g., 15-03)")
    day, month = int(m.group(1)), int(m.group(2))
    if not 1 <= day <= 31:
        raise ValueError("Day must be between 01 and 31")
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 01 and 12")
    return v


def _check_choice(v: Optional[str], choices: tuple, label: str) -> Optional[str]:
    if v in (None, ""):
        return None
    if v not in choices:
        raise ValueError(f"{label} must be one of {', '.join(choices)}")
    return v


class PersonCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None  # "DD-MM"
    residential_location: Optional[str] = None
    occupation_type: Optional[str] = None

    # Target group; leaders are always placed in their own group
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    year: Optional[int] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("phone_number")
    @classmethod
    def _phone_format(cls, v):
        return _check_phone(v)

    @field_validator("date_of_birth")
    @classmethod
    def _dob_format(cls, v):
        return _check_dob(v)

    @field_validator("gender")
    @classmethod
    def _gender(cls, v):
        return _check_choice(v, GENDERS, "Gender")

    @field_validator("occupation_type")
    @classmethod
    def _occupation(cls, v):
        return _check_choice(v, OCCUPATION_TYPES, "Occupation type")


class PersonUpdate(BaseModel):
    """Profile edit. Only fields present in the body change.

    Setting any of group_id / group_name / year moves the person, resolved
    inside the caller's scope the same way as registration.
    """

    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    phone_number: Optional[str] = Field(default=None, min_length=1)
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    residential_location: Optional[str] = None
    occupation_type: Optional[str] = None

    group_id: Optional[int] = None
    group_name: Optional[str] = None
    year: Optional[int] = None

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("phone_number")
    @classmethod
    def _phone_format(cls, v):
        return _check_phone(v)

    @field_validator("date_of_birth")
    @classmethod
    def _dob_format(cls, v):
        return _check_dob(v)

    @field_validator("gender")
    @classmethod
    def _gender(cls, v):
        return _check_choice(v, GENDERS, "Gender")

    @field_validator("occupation_type")
    @classmethod
    def _occupation(cls, v):
        return _check_choice(v, OCCUPATION_TYPES, "Occupation type")


class PersonRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    phone_number: str
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    residential_location: Optional[str] = None
    occupation_type: Optional[str] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    group_year: Optional[int] = None
    created_at: Optional[datetime] = None


class PersonWithProgress(PersonRead):
    progress: list[ProgressEntry]
    completed_stages: int
    completion_percentage: int
    attendance_count: int
    attendance_percentage: int


class PersonProgress(BaseModel):
    person: PersonRead
    progress: list[ProgressEntry]
    completed_stages: int
    completion_percentage: int
    attendance_count: int
    attendance_percentage: int


class PeopleWithProgress(BaseModel):
    people: list[PersonWithProgress]
    count: int
    total: int  # matches before limit/offset


class BulkRegisterRequest(BaseModel):
    # Raw dicts so one malformed row cannot reject the whole request
    people: list[dict]


class BulkRegisterResult(BaseModel):
    succeeded: list[PersonRead]
    failed: list[BatchFailure]


class MilestoneStat(BaseModel):
    stage_number: int
    name: str
    completed_count: int
    percentage: int


class ProgressSummary(BaseModel):
    total: int
    completed_all: int
    in_progress: int
    total_active_milestones: int
    overall_progress: int
    milestone_stats: list[MilestoneStat]
