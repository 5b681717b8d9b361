"""Database models."""
from questlog.models.user import UserRecord
from questlog.models.category import CategoryRecord
from questlog.models.todo import ToDoRecord

__all__ = [
    "UserRecord",
    "CategoryRecord",
    "ToDoRecord",
]
