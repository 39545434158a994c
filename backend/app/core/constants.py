"""Shared application constants.

Centralizes repeat values used across the catalog, registration and
attendance logic so we can document and adjust them in one place.
"""

# Valid range for a milestone's stage_number
MIN_STAGE_NUMBER = 1
MAX_STAGE_NUMBER = 99

# Python weekday() value for Sunday (Monday = 0)
SUNDAY = 6

# Accepted values for optional person fields
GENDERS = ("Male", "Female")
OCCUPATION_TYPES = ("Worker", "Student", "Unemployed")

# Starter catalog used by scripts/seed_catalog.py.
# (stage_number, name, short_label, is_derived, is_auto_completed_on_registration)
DEFAULT_MILESTONES = [
    (1, "Registered as Church Member", "Registered", False, True),
    (2, "Visited (First Quarter)", "Visit Q1", False, False),
    (3, "Visited (Second Quarter)", "Visit Q2", False, False),
    (4, "Visited (Third Quarter)", "Visit Q3", False, False),
    (5, "Completed New Believers School", "NBS", False, False),
    (6, "Baptized in Water", "Water Bapt.", False, False),
    (7, "Baptized in the Holy Ghost", "HG Bapt.", False, False),
    (8, "Completed Soul-Winning School", "SWS", False, False),
    (9, "Invited Friend to Church", "Invited", False, False),
    (10, "Joined a Ministry", "Ministry", False, False),
    (11, "Introduced to Lead Pastor", "Lead Pastor", False, False),
    (12, "Introduced to First Love Mother", "FL Mother", False, False),
    (13, "Attended All-Night Prayer", "All-Night", False, False),
    (14, "Attended Meeting God", "Meeting God", False, False),
    (15, "Attended Federal Event", "Federal", False, False),
    (16, "Completed Seeing & Hearing Education", "S&H", False, False),
    (17, "Interceded For (3+ Hours)", "Interceded", False, False),
    (18, "Sunday Service Attendance", "Attendance", True, False),
]
