"""To-do store."""
from datetime import date
from typing import List, Optional
import uuid

from sqlalchemy import delete, select, update

from questlog.domain.entities import ToDo
from questlog.domain.enums import RepeatFrequency, TimeBlock
from questlog.domain.scheduling import as_utc, period_bounds
from questlog.models import ToDoRecord
from questlog.repositories.base import SqlAlchemyRepository, storage_errors


def _to_entity(record: ToDoRecord) -> ToDo:
    return ToDo(
        id=record.id,
        description=record.description,
        time_block=record.time_block,
        difficulty=record.difficulty,
        scheduled_date=record.scheduled_date,
        deadline=as_utc(record.deadline),
        completion_status=record.completion_status,
        moved=record.moved,
        parent_id=record.parent_id,
        repeat_frequency=record.repeat_frequency,
        category_id=record.category_id,
        category_name=record.category_name,
        user_id=record.user_id,
    )


def _columns(todo: ToDo) -> dict:
    return {
        "description": todo.description,
        "time_block": todo.time_block.value,
        "difficulty": int(todo.difficulty),
        "scheduled_date": todo.scheduled_date,
        "deadline": as_utc(todo.deadline),
        "completion_status": todo.completion_status,
        "moved": todo.moved,
        "parent_id": todo.parent_id,
        "repeat_frequency": todo.repeat_frequency.value,
        "category_id": todo.category_id,
        "category_name": todo.category_name,
        "user_id": todo.user_id,
    }


class ToDoRepository(SqlAlchemyRepository):

    @storage_errors
    def get_by_id(self, todo_id: uuid.UUID) -> Optional[ToDo]:
        record = self.db.get(ToDoRecord, todo_id, populate_existing=True)
        return _to_entity(record) if record else None

    @storage_errors
    def exists_by_id(self, todo_id: uuid.UUID) -> bool:
        return self.db.execute(
            select(ToDoRecord.id).where(ToDoRecord.id == todo_id)
        ).first() is not None

    @storage_errors
    def list_by_user_date_and_time_block(
        self, user_id: uuid.UUID, on_date: date, time_block: TimeBlock
    ) -> List[ToDo]:
        """To-dos in ``time_block`` scheduled inside the period containing ``on_date``."""
        first_day, last_day = period_bounds(on_date, time_block)
        records = self.db.execute(
            select(ToDoRecord)
            .where(
                ToDoRecord.user_id == user_id,
                ToDoRecord.time_block == TimeBlock(time_block).value,
                ToDoRecord.scheduled_date >= first_day,
                ToDoRecord.scheduled_date <= last_day,
            )
            .execution_options(populate_existing=True)
        ).scalars().all()
        return [_to_entity(r) for r in records]

    @storage_errors
    def list_repeating_due_for_user(self, user_id: uuid.UUID, today: date) -> List[ToDo]:
        """Repeating, not yet moved to-dos scheduled on or before ``today``."""
        records = self.db.execute(
            select(ToDoRecord)
            .where(
                ToDoRecord.user_id == user_id,
                ToDoRecord.repeat_frequency != RepeatFrequency.NONE.value,
                ToDoRecord.moved.is_(False),
                ToDoRecord.scheduled_date <= today,
            )
            .order_by(ToDoRecord.scheduled_date)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return [_to_entity(r) for r in records]

    @storage_errors
    def create(self, todo: ToDo) -> None:
        self.db.add(ToDoRecord(id=todo.id, **_columns(todo)))
        self.db.flush()

    @storage_errors
    def update(self, todo: ToDo, require_incomplete: bool = False) -> bool:
        """Overwrite the stored to-do.

        With ``require_incomplete`` the write only matches a row that is still
        not completed, which makes the completion transition a conditional
        write. Returns ``False`` when no row matched.
        """
        stmt = update(ToDoRecord).where(ToDoRecord.id == todo.id)
        if require_incomplete:
            stmt = stmt.where(ToDoRecord.completion_status.is_(False))
        result = self.db.execute(
            stmt.values(**_columns(todo)).execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @storage_errors
    def mark_moved(self, todo_id: uuid.UUID) -> bool:
        """Set only the moved flag, and only on a row not already moved."""
        result = self.db.execute(
            update(ToDoRecord)
            .where(ToDoRecord.id == todo_id, ToDoRecord.moved.is_(False))
            .values(moved=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @storage_errors
    def delete(self, todo_id: uuid.UUID) -> bool:
        result = self.db.execute(
            delete(ToDoRecord)
            .where(ToDoRecord.id == todo_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
