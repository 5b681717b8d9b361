"""Daily batch that advances the repeating to-dos of every user."""
import logging

from questlog.core.exceptions import QuestlogError
from questlog.db.sessions import SessionLocal
from questlog.db.unit_of_work import UnitOfWork
from questlog.services.todo_service import ToDoService

logger = logging.getLogger(__name__)


def advance_all_users(session_factory=SessionLocal, clock=None) -> int:
    """Run ``advance_recurring`` for each user, one after the other.

    A user whose advancement fails is logged and skipped. Returns the total
    number of to-dos advanced.
    """
    db = session_factory()
    try:
        uow = UnitOfWork(db)
        service = ToDoService(uow, clock=clock)
        total = 0
        failed = 0
        for user_id in uow.users.list_ids():
            try:
                total += service.advance_recurring(user_id)
            except QuestlogError as exc:
                uow.rollback()
                failed += 1
                logger.error("Recurrence advancement failed for user %s: %s", user_id, exc)
        logger.info("Recurrence job advanced %d to-dos (%d users failed)", total, failed)
        return total
    finally:
        db.close()
