from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
from app.db import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("person_id", "date_attended", name="uq_attendance_person_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    person_id = Column(
        Integer, ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True
    )

    date_attended = Column(Date, nullable=False)
    service_type = Column(String(50), nullable=True)
    notes = Column(String, nullable=True)

    recorded_by = Column(Integer, nullable=True)  # directory user id
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
