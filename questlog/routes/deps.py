"""Per-request service factories for the routers."""
from fastapi import Depends
from sqlalchemy.orm import Session

from questlog.db.sessions import get_db
from questlog.db.unit_of_work import UnitOfWork
from questlog.domain.scheduling import SystemClock
from questlog.services.category_service import CategoryService
from questlog.services.todo_service import ToDoService
from questlog.services.user_service import UserService


def get_clock():
    return SystemClock()


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


def get_category_service(uow: UnitOfWork = Depends(get_uow)) -> CategoryService:
    return CategoryService(uow)


def get_todo_service(uow: UnitOfWork = Depends(get_uow), clock=Depends(get_clock)) -> ToDoService:
    return ToDoService(uow, clock=clock)


def get_user_service(uow: UnitOfWork = Depends(get_uow)) -> UserService:
    return UserService(uow)
