"""Category store, including the bulk re-pointing of to-dos."""
from typing import List, Optional
import uuid

from sqlalchemy import delete, select, update

from questlog.domain.entities import Category, normalize_category_name
from questlog.models import CategoryRecord, ToDoRecord
from questlog.repositories.base import SqlAlchemyRepository, storage_errors


def _to_entity(record: CategoryRecord) -> Category:
    return Category(id=record.id, user_id=record.user_id, name=record.name)


class CategoryRepository(SqlAlchemyRepository):

    @storage_errors
    def get_by_id(self, category_id: uuid.UUID) -> Optional[Category]:
        record = self.db.get(CategoryRecord, category_id, populate_existing=True)
        return _to_entity(record) if record else None

    @storage_errors
    def get_by_name(self, user_id: uuid.UUID, name: str) -> Optional[Category]:
        record = self.db.execute(
            select(CategoryRecord).where(
                CategoryRecord.user_id == user_id,
                CategoryRecord.name == normalize_category_name(name),
            )
            .execution_options(populate_existing=True)
        ).scalars().first()
        return _to_entity(record) if record else None

    @storage_errors
    def list_by_user(self, user_id: uuid.UUID) -> List[Category]:
        records = self.db.execute(
            select(CategoryRecord)
            .where(CategoryRecord.user_id == user_id)
            .order_by(CategoryRecord.name)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return [_to_entity(r) for r in records]

    @storage_errors
    def exists_by_normalized_name(
        self, user_id: uuid.UUID, name: str, exclude_id: Optional[uuid.UUID] = None
    ) -> bool:
        stmt = select(CategoryRecord.id).where(
            CategoryRecord.user_id == user_id,
            CategoryRecord.name == normalize_category_name(name),
        )
        if exclude_id is not None:
            stmt = stmt.where(CategoryRecord.id != exclude_id)
        return self.db.execute(stmt).first() is not None

    @storage_errors
    def create(self, category: Category) -> None:
        self.db.add(CategoryRecord(id=category.id, user_id=category.user_id, name=category.name))
        self.db.flush()

    @storage_errors
    def update(self, category: Category) -> bool:
        result = self.db.execute(
            update(CategoryRecord)
            .where(CategoryRecord.id == category.id)
            .values(name=category.name)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @storage_errors
    def delete(self, category_id: uuid.UUID) -> bool:
        result = self.db.execute(
            delete(CategoryRecord)
            .where(CategoryRecord.id == category_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @storage_errors
    def reassign_category_on_todos(self, user_id: uuid.UUID, old: Category, new: Category) -> int:
        """Point every to-do of ``user_id`` that references ``old`` at ``new``.

        Both the category id and the denormalized name are rewritten, so the
        same call serves renames (same id, new name) and deletions (other
        category). Returns the number of to-dos touched.
        """
        result = self.db.execute(
            update(ToDoRecord)
            .where(ToDoRecord.user_id == user_id, ToDoRecord.category_id == old.id)
            .values(category_id=new.id, category_name=new.name)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
