"""Error taxonomy shared by the domain core and its adapters.

Every failure raised by the entities, services or the store collaborator is
one of four kinds:

- ``ValidationError``: caller-supplied data violates an invariant.
- ``ConflictError``: the transition is not allowed given persisted state.
- ``NotFoundError``: a referenced entity does not exist.
- ``StorageError``: an opaque failure from the store, not interpreted here.

Adapters map the kinds onto their own conventions (HTTP 400/409/404/500).
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Machine-readable reason attached to an error."""

    REQUIRED_FIELD_EMPTY = "required field empty"
    REQUIRED_REFERENCE_EMPTY = "required reference empty"
    INVALID_TEMPORAL_ORDERING = "invalid temporal ordering"
    DATE_IN_PAST = "date in past"
    OUT_OF_RANGE = "out of range"
    IMMUTABLE_FIELD = "immutable field"
    NAME_CONTAINS_DIGITS = "name must not contain digits"
    RESERVED_CATEGORY = "reserved category"
    DUPLICATE_ID = "id already exists"
    DUPLICATE_NAME = "duplicate name"
    COMPLETED_ITEM = "cannot modify completed item"
    NOT_FOUND = "not found"
    STORAGE = "storage failure"


class QuestlogError(Exception):
    """Base class for all domain errors."""

    default_kind: Optional[ErrorKind] = None

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind

    def __str__(self) -> str:
        return self.message


class ValidationError(QuestlogError):
    """Input violates an entity or service invariant."""


class ConflictError(QuestlogError):
    """Requested state transition is disallowed by the current state."""


class NotFoundError(QuestlogError):
    """Referenced entity does not exist."""

    default_kind = ErrorKind.NOT_FOUND


class StorageError(QuestlogError):
    """Unrecognized failure from the store collaborator."""

    default_kind = ErrorKind.STORAGE
