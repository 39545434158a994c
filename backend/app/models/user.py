from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from app.db import Base
from app.models.group import Group


class User(Base):
    """Directory entry supplied by the identity provider: who the caller is and where they sit."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False, unique=True)

    role = Column(String(20), nullable=False)  # leader, admin, leadpastor, superadmin

    # Assignment; the group supplies name and year
    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True
    )

    group = relationship(Group, lazy="joined")
