from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
from app.db import Base


class Group(Base):
    """One instance of a recurring cohort; (name, year) addresses the instance."""

    __tablename__ = "groups"
    __table_args__ = (UniqueConstraint("name", "year", name="uq_groups_name_year"),)

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False, index=True)  # e.g. "January"
    year = Column(Integer, nullable=False, index=True)
    description = Column(String, nullable=True)

    # Archived groups drop out of default listings and become read-only
    archived = Column(Boolean, nullable=False, default=False, server_default="0")

    # Plain reference to the directory user leading the group
    leader_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
