from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db import Base
from app.models.attendance_record import AttendanceRecord
from app.models.group import Group
from app.models.progress_record import ProgressRecord


class Person(Base):
    __tablename__ = "people"

    id = Column(Integer, primary_key=True, index=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    gender = Column(String(10), nullable=True)
    date_of_birth = Column(String(5), nullable=True)  # "DD-MM", no year
    residential_location = Column(String, nullable=True)
    occupation_type = Column(String(20), nullable=True)

    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Denormalized so a person without group_id can still be placed by name
    group_name = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    group = relationship(Group, lazy="joined")

    # Rows are removed by the database (ON DELETE CASCADE), not one by one
    progress_records = relationship(
        ProgressRecord, cascade="all, delete-orphan", passive_deletes=True
    )
    attendance_records = relationship(
        AttendanceRecord, cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
