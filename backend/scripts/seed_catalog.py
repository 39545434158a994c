from datetime import date

from app.core.constants import DEFAULT_MILESTONES
from app.core.roles import Role
from app.db import Base, SessionLocal, engine
from app.models.group import Group
from app.models.milestone import Milestone
from app.models.user import User

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def seed_milestones(db) -> None:
    """Insert the starter catalog; existing stage numbers are left untouched."""
    existing = {m.stage_number for m in db.query(Milestone.stage_number).all()}
    to_add = []
    for number, name, short_label, is_derived, auto_complete in DEFAULT_MILESTONES:
        if number in existing:
            continue
        to_add.append(
            Milestone(
                stage_number=number,
                name=name,
                short_label=short_label,
                is_derived=is_derived,
                is_auto_completed_on_registration=auto_complete,
            )
        )
    if to_add:
        db.add_all(to_add)
        db.commit()

    print(f"Seeded {len(to_add)} milestones")


def seed_groups(db, year: int) -> None:
    """One group per month for `year`, plus a superadmin account to start with."""
    existing = {name for (name,) in db.query(Group.name).filter(Group.year == year).all()}
    groups = [Group(name=m, year=year) for m in MONTHS if m not in existing]
    if groups:
        db.add_all(groups)

    if db.query(User).filter(User.username == "superadmin").first() is None:
        db.add(User(username="superadmin", role=Role.superadmin.value))
    db.commit()

    print(f"Seeded {len(groups)} groups for {year}")


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_milestones(db)
        seed_groups(db, date.today().year)
    finally:
        db.close()


if __name__ == "__main__":
    main()
