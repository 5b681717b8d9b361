"""Self-validating entities: User, Category and ToDo.

Entities are frozen dataclasses. Structural invariants (required text,
required references, enum membership, experience range, deadline after the
scheduled date) are checked in ``__post_init__`` and therefore hold for every
instance, including ones rehydrated from the store.

Invariants that depend on the clock (a deadline in the past, a scheduled date
before today) are checked where a value is set: ``ToDo.create`` and
``ToDo.with_changes``. A change set is validated as a whole and produces a new
instance, so a half-applied update can never be observed.
"""
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, ClassVar, FrozenSet, Optional

from questlog.core.exceptions import ErrorKind, ValidationError
from questlog.domain.enums import Difficulty, RepeatFrequency, TimeBlock
from questlog.domain.scheduling import SystemClock, as_utc, start_of_day

HABIT_CATEGORY = "Habit"
OTHER_CATEGORY = "Other"
RESERVED_CATEGORY_NAMES = (HABIT_CATEGORY, OTHER_CATEGORY)

EXPERIENCE_PER_LEVEL = 100


def require_text(value: Any, label: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} cannot be empty", ErrorKind.REQUIRED_FIELD_EMPTY)


def require_reference(value: Any, label: str) -> uuid.UUID:
    if value is None or value == "":
        raise ValidationError(f"{label} cannot be empty", ErrorKind.REQUIRED_REFERENCE_EMPTY)
    if not isinstance(value, uuid.UUID):
        try:
            value = uuid.UUID(str(value))
        except ValueError:
            raise ValidationError(
                f"{label} is not a valid id", ErrorKind.REQUIRED_REFERENCE_EMPTY
            ) from None
    if value.int == 0:
        raise ValidationError(f"{label} cannot be empty", ErrorKind.REQUIRED_REFERENCE_EMPTY)
    return value


def _coerce_enum(enum_cls, value: Any, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        if isinstance(value, str) and value.upper() in enum_cls.__members__:
            return enum_cls[value.upper()]
    allowed = ", ".join(str(member.value) for member in enum_cls)
    raise ValidationError(f"{label} must be one of: {allowed}", ErrorKind.OUT_OF_RANGE)


def normalize_category_name(name: Any) -> str:
    """Capitalize the first letter and lowercase the rest ("wORK " -> "Work")."""
    require_text(name, "Category name")
    stripped = name.strip()
    return stripped[0].upper() + stripped[1:].lower()


@dataclass(frozen=True)
class User:
    name: str
    password_hash: str
    experience: int = 0
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        object.__setattr__(self, "id", require_reference(self.id, "User id"))
        require_text(self.name, "User name")
        require_text(self.password_hash, "Password hash")
        if isinstance(self.experience, bool) or not isinstance(self.experience, int):
            raise ValidationError("Experience must be an integer", ErrorKind.OUT_OF_RANGE)
        if self.experience < 0:
            raise ValidationError("Experience cannot be negative", ErrorKind.OUT_OF_RANGE)

    @property
    def level(self) -> int:
        # floor(sqrt(experience / 100)) without float rounding
        return math.isqrt(self.experience // EXPERIENCE_PER_LEVEL)

    def renamed(self, name: str) -> "User":
        return replace(self, name=name)


@dataclass(frozen=True)
class Category:
    user_id: uuid.UUID
    name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        object.__setattr__(self, "id", require_reference(self.id, "Category id"))
        object.__setattr__(self, "user_id", require_reference(self.user_id, "User id"))
        require_text(self.name, "Category name")

    @property
    def is_reserved(self) -> bool:
        return self.name in RESERVED_CATEGORY_NAMES

    def renamed(self, name: str) -> "Category":
        return replace(self, name=name)


@dataclass(frozen=True)
class ToDo:
    """A scheduled to-do item.

    Build new items with :meth:`create` and change them with
    :meth:`with_changes`; both run the clock-dependent checks. Calling the
    constructor directly is the rehydration path used by the store and only
    enforces the structural invariants.
    """

    description: str
    time_block: TimeBlock
    difficulty: Difficulty
    scheduled_date: date
    category_id: uuid.UUID
    category_name: str
    user_id: uuid.UUID
    deadline: Optional[datetime] = None
    completion_status: bool = False
    moved: bool = False
    parent_id: Optional[uuid.UUID] = None
    repeat_frequency: RepeatFrequency = RepeatFrequency.NONE
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    MUTABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset(
        {
            "description",
            "difficulty",
            "scheduled_date",
            "deadline",
            "completion_status",
            "repeat_frequency",
            "category_id",
            "category_name",
        }
    )
    IMMUTABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset(
        {"id", "time_block", "user_id", "parent_id", "moved"}
    )

    def __post_init__(self):
        object.__setattr__(self, "id", require_reference(self.id, "ToDo id"))
        require_text(self.description, "Description")
        object.__setattr__(self, "time_block", _coerce_enum(TimeBlock, self.time_block, "Time block"))
        object.__setattr__(self, "difficulty", _coerce_enum(Difficulty, self.difficulty, "Difficulty"))
        object.__setattr__(
            self,
            "repeat_frequency",
            _coerce_enum(RepeatFrequency, self.repeat_frequency, "Repeat frequency"),
        )
        object.__setattr__(self, "scheduled_date", self._to_day(self.scheduled_date))
        object.__setattr__(self, "deadline", self._to_instant(self.deadline))
        object.__setattr__(self, "category_id", require_reference(self.category_id, "Category id"))
        require_text(self.category_name, "Category name")
        object.__setattr__(self, "user_id", require_reference(self.user_id, "User id"))
        if self.parent_id is not None:
            parent_id = self.parent_id
            if not isinstance(parent_id, uuid.UUID):
                parent_id = require_reference(parent_id, "Parent to-do id")
            object.__setattr__(self, "parent_id", parent_id if parent_id.int else None)
        object.__setattr__(self, "completion_status", bool(self.completion_status))
        object.__setattr__(self, "moved", bool(self.moved))

        if self.deadline is not None and self.deadline <= start_of_day(self.scheduled_date):
            raise ValidationError(
                "Deadline must be later than the scheduled date",
                ErrorKind.INVALID_TEMPORAL_ORDERING,
            )

    @staticmethod
    def _to_day(value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        raise ValidationError("Scheduled date is required", ErrorKind.REQUIRED_FIELD_EMPTY)

    @staticmethod
    def _to_instant(value: Any) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return as_utc(value)
        if isinstance(value, date):
            return start_of_day(value)
        raise ValidationError("Deadline must be a date or datetime", ErrorKind.OUT_OF_RANGE)

    @classmethod
    def create(
        cls,
        description: str,
        time_block: TimeBlock,
        difficulty: Difficulty,
        scheduled_date: date,
        category_id: uuid.UUID,
        category_name: str,
        user_id: uuid.UUID,
        deadline: Optional[datetime] = None,
        parent_id: Optional[uuid.UUID] = None,
        repeat_frequency: RepeatFrequency = RepeatFrequency.NONE,
        clock=None,
    ) -> "ToDo":
        """Build a brand-new, not yet completed to-do with a fresh id."""
        todo = cls(
            description=description,
            time_block=time_block,
            difficulty=difficulty,
            scheduled_date=scheduled_date,
            category_id=category_id,
            category_name=category_name,
            user_id=user_id,
            deadline=deadline,
            parent_id=parent_id,
            repeat_frequency=repeat_frequency,
        )
        todo.check_schedule(clock or SystemClock(), check_date=True, check_deadline=True)
        return todo

    def with_changes(self, clock=None, **changes) -> "ToDo":
        """Return a copy with ``changes`` applied, validating the whole new state.

        Passing an immutable field with its current value is accepted and
        ignored; passing a different value raises ``ValidationError``.
        """
        unknown = set(changes) - self.MUTABLE_FIELDS - self.IMMUTABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown to-do fields: {', '.join(sorted(unknown))}")
        immutable = sorted(
            name
            for name in set(changes) & self.IMMUTABLE_FIELDS
            if changes[name] != getattr(self, name)
        )
        if immutable:
            raise ValidationError(
                f"Cannot change {', '.join(immutable)} of an existing to-do",
                ErrorKind.IMMUTABLE_FIELD,
            )
        mutable = {name: value for name, value in changes.items() if name in self.MUTABLE_FIELDS}

        updated = replace(self, **mutable)
        updated.check_schedule(
            clock or SystemClock(),
            check_date=updated.scheduled_date != self.scheduled_date,
            check_deadline=updated.deadline != self.deadline,
        )
        return updated

    def check_schedule(self, clock, check_date: bool, check_deadline: bool) -> None:
        if check_date and self.scheduled_date < clock.today():
            raise ValidationError("Scheduled date cannot be in the past", ErrorKind.DATE_IN_PAST)
        if check_deadline and self.deadline is not None and self.deadline < clock.now():
            raise ValidationError(
                "Deadline cannot be in the past", ErrorKind.INVALID_TEMPORAL_ORDERING
            )
