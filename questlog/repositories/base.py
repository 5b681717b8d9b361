"""Shared plumbing for the SQLAlchemy repositories."""
import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from questlog.core.exceptions import StorageError

logger = logging.getLogger(__name__)


def storage_errors(func):
    """Re-raise any ``SQLAlchemyError`` from a repository call as ``StorageError``."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Storage failure in %s: %s", func.__qualname__, exc)
            raise StorageError(f"Storage failure in {func.__qualname__}") from exc

    return wrapper


class SqlAlchemyRepository:
    """Base repository bound to a session. Repositories flush, never commit."""

    def __init__(self, db):
        self.db = db
