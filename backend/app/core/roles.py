from enum import Enum


class Role(str, Enum):
    """Organizational roles, lowest privilege first."""

    leader = "leader"
    admin = "admin"
    leadpastor = "leadpastor"
    superadmin = "superadmin"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)

    def at_least(self, other: "Role") -> bool:
        return self.rank >= Role(other).rank

    def __lt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank >= other.rank


_ORDER = [Role.leader, Role.admin, Role.leadpastor, Role.superadmin]
