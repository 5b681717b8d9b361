"""Domain entities, enums and scheduling helpers."""
from questlog.domain.entities import (
    HABIT_CATEGORY,
    OTHER_CATEGORY,
    RESERVED_CATEGORY_NAMES,
    Category,
    ToDo,
    User,
    normalize_category_name,
)
from questlog.domain.enums import Difficulty, RepeatFrequency, TimeBlock
from questlog.domain.scheduling import SystemClock

__all__ = [
    "HABIT_CATEGORY",
    "OTHER_CATEGORY",
    "RESERVED_CATEGORY_NAMES",
    "Category",
    "ToDo",
    "User",
    "normalize_category_name",
    "Difficulty",
    "RepeatFrequency",
    "TimeBlock",
    "SystemClock",
]
