from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func
from app.db import Base
from app.models.milestone import Milestone  # noqa: F401  (referenced by the stage_number FK)


class ProgressRecord(Base):
    __tablename__ = "progress_records"
    __table_args__ = (
        UniqueConstraint("person_id", "stage_number", name="uq_progress_person_stage"),
    )

    id = Column(Integer, primary_key=True, index=True)
    person_id = Column(
        Integer, ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True
    )
    stage_number = Column(
        Integer, ForeignKey("milestones.stage_number"), nullable=False, index=True
    )

    is_completed = Column(Boolean, nullable=False, default=False, server_default="0")
    # Set on the first false -> true transition, cleared on true -> false
    date_completed = Column(DateTime(timezone=True), nullable=True)

    updated_by = Column(Integer, nullable=True)  # directory user id
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
