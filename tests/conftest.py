import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RECURRENCE_JOB_ENABLED", "false")

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker

import questlog.models  # noqa: F401
from questlog.db.base import Base
from questlog.db.sessions import build_engine
from questlog.db.unit_of_work import UnitOfWork
from questlog.domain.entities import OTHER_CATEGORY, ToDo
from questlog.domain.enums import Difficulty, RepeatFrequency, TimeBlock
from questlog.services.category_service import CategoryService
from questlog.services.todo_service import ToDoService
from questlog.services.user_service import UserService


class FixedClock:
    """Clock pinned to a settable instant."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def category_service(uow):
    return CategoryService(uow)


@pytest.fixture
def todo_service(uow, clock):
    return ToDoService(uow, clock=clock)


@pytest.fixture
def user_service(uow, category_service):
    return UserService(uow, category_service)


@pytest.fixture
def user(user_service):
    return user_service.register("alice", "correct horse")


@pytest.fixture
def other_category(category_service, user):
    return next(c for c in category_service.get_by_user(user.id) if c.name == OTHER_CATEGORY)


@pytest.fixture
def make_todo(clock, other_category):
    """Factory for new to-dos owned by ``user`` in the Other category."""

    def _make(**overrides):
        fields = dict(
            description="Water the plants",
            time_block=TimeBlock.DAY,
            difficulty=Difficulty.EASY,
            scheduled_date=clock.today(),
            category_id=other_category.id,
            category_name=other_category.name,
            user_id=other_category.user_id,
            repeat_frequency=RepeatFrequency.NONE,
        )
        fields.update(overrides)
        return ToDo.create(clock=clock, **fields)

    return _make
