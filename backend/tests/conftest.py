import os
from datetime import date, timedelta

# Point the app at in-memory sqlite before anything imports app.db
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.models.group import Group  # noqa: E402
from app.models.milestone import Milestone  # noqa: E402
from app.models.person import Person  # noqa: E402
from app.models.user import User  # noqa: E402


@pytest.fixture
def db():
    """Fresh schema per test. Commit test data before calling the API."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def milestone(self, stage_number, name=None, **kwargs) -> Milestone:
        m = Milestone(stage_number=stage_number, name=name or f"Stage {stage_number}", **kwargs)
        self.db.add(m)
        self.db.commit()
        return m

    def catalog(self) -> list[Milestone]:
        """Registration (auto-completed), two manual stages and the attendance milestone."""
        return [
            self.milestone(1, "Registered", is_auto_completed_on_registration=True),
            self.milestone(2, "Visited"),
            self.milestone(3, "Baptized"),
            self.milestone(18, "Attendance", is_derived=True),
        ]

    def group(self, name="January", year=2024, archived=False) -> Group:
        g = Group(name=name, year=year, archived=archived)
        self.db.add(g)
        self.db.commit()
        return g

    def user(self, role, group=None) -> User:
        u = User(username=f"user{self._next()}", role=role, group_id=group.id if group else None)
        self.db.add(u)
        self.db.commit()
        return u

    def person(self, group=None, first_name=None, group_name=None) -> Person:
        n = self._next()
        p = Person(
            first_name=first_name or f"Person{n}",
            last_name="Test",
            phone_number="0240000000",
            group_id=group.id if group else None,
            group_name=group.name if group else group_name,
        )
        self.db.add(p)
        self.db.commit()
        return p


@pytest.fixture
def factory(db):
    return Factory(db)


def auth(user) -> dict:
    return {"X-User-Id": str(user.id)}


def sundays(start: date, count: int) -> list[date]:
    return [start + timedelta(weeks=i) for i in range(count)]
