from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    name: str = Field(min_length=1)
    year: int = Field(ge=2000, le=2100)
    description: Optional[str] = None
    leader_id: Optional[int] = None


class GroupRead(BaseModel):
    id: int
    name: str
    year: int
    description: Optional[str] = None
    archived: bool
    leader_id: Optional[int] = None
    member_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class GroupList(BaseModel):
    groups: list[GroupRead]
    available_years: list[int]


class GroupCloneRequest(BaseModel):
    # Defaults to the current year; groups are copied from the year before
    target_year: Optional[int] = Field(default=None, ge=2001, le=2100)


class GroupCloneResult(BaseModel):
    cloned: int
    source_year: int
    target_year: int
    groups: list[GroupRead]
    errors: list[str]
