"""User store."""
from typing import List, Optional
import uuid

from sqlalchemy import select, update

from questlog.domain.entities import User
from questlog.models import UserRecord
from questlog.repositories.base import SqlAlchemyRepository, storage_errors


def _to_entity(record: UserRecord) -> User:
    return User(
        id=record.id,
        name=record.name,
        password_hash=record.password_hash,
        experience=record.experience,
    )


class UserRepository(SqlAlchemyRepository):

    @storage_errors
    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        record = self.db.get(UserRecord, user_id, populate_existing=True)
        return _to_entity(record) if record else None

    @storage_errors
    def get_by_name(self, name: str) -> Optional[User]:
        record = self.db.execute(
            select(UserRecord)
            .where(UserRecord.name == name)
            .execution_options(populate_existing=True)
        ).scalars().first()
        return _to_entity(record) if record else None

    @storage_errors
    def list_ids(self) -> List[uuid.UUID]:
        return list(self.db.execute(select(UserRecord.id)).scalars())

    @storage_errors
    def exists_by_name(self, name: str) -> bool:
        return self.db.execute(
            select(UserRecord.id).where(UserRecord.name == name)
        ).first() is not None

    @storage_errors
    def create(self, user: User) -> None:
        self.db.add(
            UserRecord(
                id=user.id,
                name=user.name,
                password_hash=user.password_hash,
                experience=user.experience,
            )
        )
        self.db.flush()

    @storage_errors
    def add_experience(self, user_id: uuid.UUID, amount: int) -> bool:
        """Increment experience in the database. Returns ``False`` when no row matched."""
        result = self.db.execute(
            update(UserRecord)
            .where(UserRecord.id == user_id)
            .values(experience=UserRecord.experience + amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @storage_errors
    def update(self, user: User) -> bool:
        """Overwrite the stored user. Returns ``False`` when no row matched."""
        result = self.db.execute(
            update(UserRecord)
            .where(UserRecord.id == user.id)
            .values(
                name=user.name,
                password_hash=user.password_hash,
                experience=user.experience,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
