from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_STAGE_NUMBER, MIN_STAGE_NUMBER


class MilestoneBase(BaseModel):
    name: str = Field(min_length=1)
    short_label: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    is_derived: bool = False
    is_auto_completed_on_registration: bool = False


class MilestoneCreate(MilestoneBase):
    stage_number: int = Field(ge=MIN_STAGE_NUMBER, le=MAX_STAGE_NUMBER)


class MilestoneUpdate(BaseModel):
    """Partial update; stage_number is immutable."""

    name: Optional[str] = Field(default=None, min_length=1)
    short_label: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    is_derived: Optional[bool] = None
    is_auto_completed_on_registration: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class MilestoneRead(MilestoneBase):
    stage_number: int

    model_config = ConfigDict(from_attributes=True)
