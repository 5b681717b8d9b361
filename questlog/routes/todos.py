"""To-do routes."""
import uuid
from datetime import date, datetime
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from questlog.core.exceptions import ConflictError, ErrorKind, NotFoundError
from questlog.core.security import get_current_user
from questlog.domain.entities import Category, ToDo, User
from questlog.domain.enums import TimeBlock
from questlog.routes.deps import get_category_service, get_todo_service
from questlog.services.category_service import CategoryService
from questlog.services.todo_service import ToDoService


router = APIRouter(prefix="/todos", tags=["To-dos"])


class CreateToDoRequest(BaseModel):
    description: str
    time_block: str
    difficulty: Union[int, str] = 0
    scheduled_date: date
    deadline: Optional[datetime] = None
    category_id: uuid.UUID
    repeat_frequency: str = "None"


class UpdateToDoRequest(BaseModel):
    description: Optional[str] = None
    difficulty: Optional[Union[int, str]] = None
    scheduled_date: Optional[date] = None
    deadline: Optional[datetime] = None
    completion_status: Optional[bool] = None
    category_id: Optional[uuid.UUID] = None
    repeat_frequency: Optional[str] = None


class ToDoResponse(BaseModel):
    id: uuid.UUID
    description: str
    time_block: str
    difficulty: int
    scheduled_date: date
    deadline: Optional[datetime]
    completion_status: bool
    moved: bool
    parent_id: Optional[uuid.UUID]
    repeat_frequency: str
    category_id: uuid.UUID
    category_name: str
    user_id: uuid.UUID

    @classmethod
    def from_entity(cls, todo: ToDo) -> "ToDoResponse":
        return cls(
            id=todo.id,
            description=todo.description,
            time_block=todo.time_block.value,
            difficulty=int(todo.difficulty),
            scheduled_date=todo.scheduled_date,
            deadline=todo.deadline,
            completion_status=todo.completion_status,
            moved=todo.moved,
            parent_id=todo.parent_id,
            repeat_frequency=todo.repeat_frequency.value,
            category_id=todo.category_id,
            category_name=todo.category_name,
            user_id=todo.user_id,
        )


class AdvanceResponse(BaseModel):
    advanced: int


def _owned_todo(todos: ToDoService, todo_id: uuid.UUID, user: User) -> ToDo:
    todo = todos.get_by_id(todo_id)
    if todo is None or todo.user_id != user.id:
        raise NotFoundError("ToDo was not found")
    return todo


def _owned_category(categories: CategoryService, category_id: uuid.UUID, user: User) -> Category:
    category = categories.get_by_id(category_id)
    if category is None or category.user_id != user.id:
        raise NotFoundError("Category was not found")
    return category


@router.get("", response_model=List[ToDoResponse])
def list_todos(
    on_date: date = Query(..., alias="date"),
    time_block: TimeBlock = Query(...),
    current_user: User = Depends(get_current_user),
    todos: ToDoService = Depends(get_todo_service),
):
    """To-dos of a time block whose scheduled date falls in the period containing ``date``."""
    items = todos.get_by_user_date_and_time_block(current_user.id, on_date, time_block)
    return [ToDoResponse.from_entity(t) for t in items]


@router.get("/{todo_id}", response_model=ToDoResponse)
def get_todo(
    todo_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    todos: ToDoService = Depends(get_todo_service),
):
    return ToDoResponse.from_entity(_owned_todo(todos, todo_id, current_user))


@router.post("", response_model=ToDoResponse, status_code=status.HTTP_201_CREATED)
def create_todo(
    request: CreateToDoRequest,
    current_user: User = Depends(get_current_user),
    todos: ToDoService = Depends(get_todo_service),
    categories: CategoryService = Depends(get_category_service),
):
    category = _owned_category(categories, request.category_id, current_user)
    todo = ToDo.create(
        description=request.description,
        time_block=request.time_block,
        difficulty=request.difficulty,
        scheduled_date=request.scheduled_date,
        deadline=request.deadline,
        category_id=category.id,
        category_name=category.name,
        user_id=current_user.id,
        repeat_frequency=request.repeat_frequency,
        clock=todos.clock,
    )
    return ToDoResponse.from_entity(todos.add(todo))


@router.put("/{todo_id}", response_model=ToDoResponse)
def update_todo(
    todo_id: uuid.UUID,
    request: UpdateToDoRequest,
    current_user: User = Depends(get_current_user),
    todos: ToDoService = Depends(get_todo_service),
    categories: CategoryService = Depends(get_category_service),
):
    """
    Partially update a to-do.

    Setting ``completion_status`` to true awards the difficulty as experience.
    Completed to-dos cannot be changed.
    """
    existing = _owned_todo(todos, todo_id, current_user)
    if existing.completion_status:
        raise ConflictError("Cannot modify completed item", ErrorKind.COMPLETED_ITEM)

    changes = request.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None:
        category = _owned_category(categories, changes["category_id"], current_user)
        changes["category_name"] = category.name
    elif "category_id" in changes:
        del changes["category_id"]

    updated = existing.with_changes(clock=todos.clock, **changes)
    return ToDoResponse.from_entity(todos.update(updated))


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(
    todo_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    todos: ToDoService = Depends(get_todo_service),
):
    _owned_todo(todos, todo_id, current_user)
    todos.delete(todo_id)


@router.post("/advance", response_model=AdvanceResponse)
def advance_recurring(
    current_user: User = Depends(get_current_user),
    todos: ToDoService = Depends(get_todo_service),
):
    """Spawn the next occurrence of every due repeating to-do of the current user."""
    return AdvanceResponse(advanced=todos.advance_recurring(current_user.id))
