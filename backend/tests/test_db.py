import pytest

from app.core.errors import InternalError
from app.db import unit_of_work
from app.models.group import Group


def test_unexpected_error_rolls_back(db):
    with pytest.raises(RuntimeError):
        with unit_of_work(db, "create group"):
            db.add(Group(name="January", year=2024))
            db.flush()
            raise RuntimeError("boom")
    assert db.query(Group).count() == 0


def test_integrity_failure_without_conflict_is_internal(db):
    db.add(Group(name="January", year=2024))
    db.commit()
    with pytest.raises(InternalError):
        with unit_of_work(db, "create group"):
            db.add(Group(name="January", year=2024))
    assert db.query(Group).count() == 1
