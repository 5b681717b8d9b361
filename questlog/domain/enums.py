"""Enumerations used by the to-do model."""
from enum import Enum, IntEnum


class TimeBlock(str, Enum):
    """Viewing bucket a to-do is displayed under."""

    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"


class Difficulty(IntEnum):
    """Difficulty of a to-do; the value is the experience it awards."""

    NONE = 0
    EASY = 5
    MEDIUM = 10
    HARD = 15
    NIGHTMARE = 20


class RepeatFrequency(str, Enum):
    """How often a to-do spawns its next occurrence."""

    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"
