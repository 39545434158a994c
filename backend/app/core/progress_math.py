import math


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def percent(part: int, whole: int) -> int:
    """
    Integer percentage, 0 when `whole` is 0.
    Example: percent(7, 12) -> 58
    """
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)


def attendance_percent(attendance_count: int, attendance_goal: int) -> int:
    """Share of the attendance goal reached, capped at 100."""
    if attendance_goal <= 0:
        return 100
    return min(100, percent(attendance_count, attendance_goal))
