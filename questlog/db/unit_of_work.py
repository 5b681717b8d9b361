"""Unit of work over one SQLAlchemy session.

Services never commit through a repository; they group writes in
``uow.transaction()`` so a category write and the bulk to-do reassignment it
implies succeed or fail together.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from questlog.core.exceptions import StorageError
from questlog.repositories.category_repository import CategoryRepository
from questlog.repositories.todo_repository import ToDoRepository
from questlog.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.categories = CategoryRepository(db)
        self.todos = ToDoRepository(db)
        self._depth = 0

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Commit failed: %s", exc)
            raise StorageError("Could not commit the transaction") from exc

    def rollback(self) -> None:
        self.db.rollback()

    @contextmanager
    def transaction(self) -> Iterator["UnitOfWork"]:
        """Commit on leaving the outermost block, roll back on any exception.

        Nested blocks join the enclosing transaction.
        """
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self.commit()
