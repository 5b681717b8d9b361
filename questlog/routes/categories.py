"""Category routes."""
import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from questlog.core.exceptions import NotFoundError
from questlog.core.security import get_current_user
from questlog.domain.entities import Category, User
from questlog.routes.deps import get_category_service
from questlog.services.category_service import CategoryService


router = APIRouter(prefix="/categories", tags=["Categories"])


class CategoryRequest(BaseModel):
    name: str


class CategoryResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    reserved: bool

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            user_id=category.user_id,
            name=category.name,
            reserved=category.is_reserved,
        )


class CategoryDeleteResponse(BaseModel):
    id: uuid.UUID
    todos_reassigned: int


def _owned(categories: CategoryService, category_id: uuid.UUID, user: User) -> Category:
    category = categories.get_by_id(category_id)
    if category is None or category.user_id != user.id:
        raise NotFoundError("Category was not found")
    return category


@router.get("", response_model=List[CategoryResponse])
def list_categories(
    current_user: User = Depends(get_current_user),
    categories: CategoryService = Depends(get_category_service),
):
    return [CategoryResponse.from_entity(c) for c in categories.get_by_user(current_user.id)]


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    categories: CategoryService = Depends(get_category_service),
):
    return CategoryResponse.from_entity(_owned(categories, category_id, current_user))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    request: CategoryRequest,
    current_user: User = Depends(get_current_user),
    categories: CategoryService = Depends(get_category_service),
):
    """Create a category; the name is normalized ("wORK" -> "Work")."""
    category = categories.add(Category(user_id=current_user.id, name=request.name))
    return CategoryResponse.from_entity(category)


@router.put("/{category_id}", response_model=CategoryResponse)
def rename_category(
    category_id: uuid.UUID,
    request: CategoryRequest,
    current_user: User = Depends(get_current_user),
    categories: CategoryService = Depends(get_category_service),
):
    """Rename a category and every to-do that references it."""
    existing = _owned(categories, category_id, current_user)
    return CategoryResponse.from_entity(categories.update(existing.renamed(request.name)))


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
def delete_category(
    category_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    categories: CategoryService = Depends(get_category_service),
):
    """Delete a category, moving its to-dos to Other."""
    _owned(categories, category_id, current_user)
    return CategoryDeleteResponse(id=category_id, todos_reassigned=categories.delete(category_id))
