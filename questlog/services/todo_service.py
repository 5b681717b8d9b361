"""To-do lifecycle and recurrence service.

Besides CRUD passthroughs this service owns two cross-cutting behaviours:

- completing a to-do awards its difficulty value as experience to the owner,
  in the same transaction as the to-do write;
- ``advance_recurring`` spawns the next occurrence of every due repeating
  to-do and archives the original as ``moved``.
"""
from dataclasses import replace
from datetime import date, datetime
from typing import List, Optional
import logging
import uuid

from questlog.core.exceptions import ConflictError, ErrorKind, NotFoundError, ValidationError
from questlog.db.unit_of_work import UnitOfWork
from questlog.domain.entities import ToDo, require_reference
from questlog.domain.enums import Difficulty, TimeBlock
from questlog.domain.scheduling import SystemClock, next_occurrence_on_or_after, start_of_day

logger = logging.getLogger(__name__)


class ToDoService:
    def __init__(self, uow: UnitOfWork, clock=None):
        self.uow = uow
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_by_id(self, todo_id: uuid.UUID) -> Optional[ToDo]:
        return self.uow.todos.get_by_id(todo_id)

    def get_by_user_date_and_time_block(
        self, user_id: uuid.UUID, on_date: date, time_block: TimeBlock
    ) -> List[ToDo]:
        return self.uow.todos.list_by_user_date_and_time_block(user_id, on_date, time_block)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def add(self, todo: ToDo) -> ToDo:
        todo.check_schedule(self.clock, check_date=True, check_deadline=True)
        with self.uow.transaction():
            if self.uow.todos.exists_by_id(todo.id):
                raise ConflictError("ToDo id already exists", ErrorKind.DUPLICATE_ID)
            self.uow.todos.create(todo)
        return todo

    def update(self, todo: ToDo) -> ToDo:
        """Persist a changed to-do.

        The stored record, not the payload, decides whether the item is
        frozen. A false -> true completion awards experience to the owner and
        only writes if the stored row is still incomplete, so a racing second
        completion fails instead of awarding twice.

        Raises:
            NotFoundError: no to-do (or owning user) with that id
            ConflictError: the stored to-do is already completed
            ValidationError: owner or time block differ from the stored record,
                or a changed date or deadline lies in the past
        """
        with self.uow.transaction():
            existing = self.uow.todos.get_by_id(todo.id)
            if existing is None:
                raise NotFoundError("ToDo was not found")
            if existing.completion_status:
                logger.warning("Refused to modify completed to-do %s", todo.id)
                raise ConflictError("Cannot modify completed item", ErrorKind.COMPLETED_ITEM)
            if todo.user_id != existing.user_id or todo.time_block != existing.time_block:
                raise ValidationError(
                    "Owner and time block of a to-do cannot change", ErrorKind.IMMUTABLE_FIELD
                )
            todo.check_schedule(
                self.clock,
                check_date=todo.scheduled_date != existing.scheduled_date,
                check_deadline=todo.deadline != existing.deadline,
            )

            # lineage and the moved flag belong to the recurrence advancer
            todo = replace(todo, moved=existing.moved, parent_id=existing.parent_id)

            completing = todo.completion_status and not existing.completion_status
            if completing:
                self._award_experience(existing.user_id, todo.difficulty)

            if not self.uow.todos.update(todo, require_incomplete=True):
                raise ConflictError("Cannot modify completed item", ErrorKind.COMPLETED_ITEM)

        if completing:
            logger.info("To-do %s completed, %d experience awarded", todo.id, int(todo.difficulty))
        return todo

    def delete(self, todo_id: uuid.UUID) -> None:
        with self.uow.transaction():
            if not self.uow.todos.delete(todo_id):
                raise NotFoundError("ToDo was not found")

    def advance_recurring(self, user_id: uuid.UUID) -> int:
        """Spawn the next occurrence of each due repeating to-do of ``user_id``.

        For every repeating, not yet moved to-do scheduled today or earlier,
        a successor is created and committed first; only then is the original
        marked ``moved``. Returns the number of to-dos advanced.

        The successor date is stepped by the repeat frequency until it is no
        earlier than today, so an item left overdue for several periods gets
        one successor on the next period boundary rather than one per missed
        period (a weekly item from Jan 1 advanced on Jan 10 lands on Jan 15).

        Marking ``moved`` touches only that flag, so a completion or edit
        made to the original while it was being advanced is kept.
        """
        user_id = require_reference(user_id, "User id")
        today = self.clock.today()
        due = self.uow.todos.list_repeating_due_for_user(user_id, today)
        if not due:
            logger.debug("No repeating to-dos due for user %s", user_id)
            return 0

        for original in due:
            successor = self._successor_of(original, today)
            self.add(successor)
            with self.uow.transaction():
                if not self.uow.todos.mark_moved(original.id):
                    if not self.uow.todos.exists_by_id(original.id):
                        raise NotFoundError("ToDo was not found")
                    logger.warning("To-do %s was already marked moved", original.id)
            logger.debug(
                "Advanced to-do %s (%s) to %s as %s",
                original.id, original.scheduled_date, successor.scheduled_date, successor.id,
            )

        logger.info("Advanced %d repeating to-dos for user %s", len(due), user_id)
        return len(due)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _award_experience(self, user_id: uuid.UUID, difficulty: Difficulty) -> None:
        if not self.uow.users.add_experience(user_id, int(difficulty)):
            raise NotFoundError("User was not found")

    def _successor_of(self, original: ToDo, today: date) -> ToDo:
        next_date = next_occurrence_on_or_after(
            original.scheduled_date, original.repeat_frequency, today
        )
        deadline = self._shifted_deadline(original, next_date)
        return ToDo.create(
            description=original.description,
            time_block=original.time_block,
            difficulty=original.difficulty,
            scheduled_date=next_date,
            category_id=original.category_id,
            category_name=original.category_name,
            user_id=original.user_id,
            deadline=deadline,
            parent_id=original.parent_id or original.id,
            repeat_frequency=original.repeat_frequency,
            clock=self.clock,
        )

    def _shifted_deadline(self, original: ToDo, next_date: date) -> Optional[datetime]:
        if original.deadline is None:
            return None
        shifted = original.deadline + (
            start_of_day(next_date) - start_of_day(original.scheduled_date)
        )
        if shifted < self.clock.now():
            logger.warning(
                "Dropping deadline of the successor of %s: %s is already past",
                original.id, shifted.isoformat(),
            )
            return None
        return shifted
