from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func
from app.db import Base


class Milestone(Base):
    __tablename__ = "milestones"
    __table_args__ = (
        CheckConstraint("stage_number BETWEEN 1 AND 99", name="ck_milestones_stage_range"),
    )

    # Stable key; never changes after creation
    stage_number = Column(Integer, primary_key=True, autoincrement=False)

    name = Column(String, nullable=False)
    short_label = Column(String(32), nullable=True)
    description = Column(String, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    # Completion computed from attendance instead of toggled by a person
    is_derived = Column(Boolean, nullable=False, default=False, server_default="0")
    # Starts completed when a person is registered
    is_auto_completed_on_registration = Column(
        Boolean, nullable=False, default=False, server_default="0"
    )

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
