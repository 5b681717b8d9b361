"""Category lifecycle service.

Owns the rules that make categories more than plain rows:

- names are normalized ("wORK" -> "Work") and may not contain digits;
- every user has two reserved categories, ``Habit`` and ``Other``, created at
  registration and never created, renamed or deleted by the user;
- a rename re-points the to-dos of that category to the new name, and a
  delete moves them to ``Other``, each in the same transaction as the
  category write.
"""
from typing import List, Optional
import logging
import uuid

from questlog.core.exceptions import ConflictError, ErrorKind, NotFoundError, ValidationError
from questlog.db.unit_of_work import UnitOfWork
from questlog.domain.entities import (
    OTHER_CATEGORY,
    RESERVED_CATEGORY_NAMES,
    Category,
    normalize_category_name,
)

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def get_by_id(self, category_id: uuid.UUID) -> Optional[Category]:
        return self.uow.categories.get_by_id(category_id)

    def get_by_user(self, user_id: uuid.UUID) -> List[Category]:
        return self.uow.categories.list_by_user(user_id)

    def add(self, category: Category) -> Category:
        """Normalize and persist a user-created category.

        Raises:
            ValidationError: name contains digits or is a reserved name
            ConflictError: the user already has a category with that name
        """
        category = category.renamed(self._checked_name(category.name))
        with self.uow.transaction():
            if self.uow.categories.exists_by_normalized_name(category.user_id, category.name):
                logger.warning("Category %s already exists for user %s", category.name, category.user_id)
                raise ConflictError("Duplicate name for user", ErrorKind.DUPLICATE_NAME)
            self.uow.categories.create(category)
        logger.info("Created category %s for user %s", category.name, category.user_id)
        return category

    def update(self, category: Category) -> Category:
        """Rename a category and re-point its to-dos, atomically.

        Raises:
            NotFoundError: no category with that id
            ValidationError: reserved category, reserved/invalid new name, or owner change
            ConflictError: another category of the user already has the new name
        """
        with self.uow.transaction():
            existing = self.uow.categories.get_by_id(category.id)
            if existing is None:
                raise NotFoundError("Category was not found")
            if existing.is_reserved:
                logger.warning("Refused to rename reserved category %s", existing.id)
                raise ValidationError("Cannot modify a reserved category", ErrorKind.RESERVED_CATEGORY)
            if category.user_id != existing.user_id:
                raise ValidationError("Category owner cannot change", ErrorKind.IMMUTABLE_FIELD)

            renamed = existing.renamed(self._checked_name(category.name))
            if self.uow.categories.exists_by_normalized_name(
                renamed.user_id, renamed.name, exclude_id=renamed.id
            ):
                raise ConflictError("Duplicate name for user", ErrorKind.DUPLICATE_NAME)

            self.uow.categories.update(renamed)
            touched = self.uow.categories.reassign_category_on_todos(renamed.user_id, existing, renamed)
        logger.info(
            "Renamed category %s from %s to %s (%d to-dos updated)",
            renamed.id, existing.name, renamed.name, touched,
        )
        return renamed

    def delete(self, category_id: uuid.UUID) -> int:
        """Delete a category, moving its to-dos to the user's ``Other`` category.

        Returns the number of to-dos reassigned.

        Raises:
            NotFoundError: no category with that id, or the user's ``Other``
                category is missing (corrupted account)
            ValidationError: the category is reserved
        """
        with self.uow.transaction():
            existing = self.uow.categories.get_by_id(category_id)
            if existing is None:
                raise NotFoundError("Category was not found")
            if existing.is_reserved:
                logger.warning("Refused to delete reserved category %s", existing.id)
                raise ValidationError("Cannot delete reserved category", ErrorKind.RESERVED_CATEGORY)

            fallback = self.uow.categories.get_by_name(existing.user_id, OTHER_CATEGORY)
            if fallback is None:
                logger.error("User %s has no %s category", existing.user_id, OTHER_CATEGORY)
                raise NotFoundError(f"Reserved category {OTHER_CATEGORY} is missing for this user")

            moved = self.uow.categories.reassign_category_on_todos(existing.user_id, existing, fallback)
            self.uow.categories.delete(existing.id)
        logger.info("Deleted category %s (%d to-dos moved to %s)", existing.name, moved, OTHER_CATEGORY)
        return moved

    def create_default_categories(self, user_id: uuid.UUID) -> List[Category]:
        """Create the reserved categories for a freshly registered user.

        Categories that already exist are left alone.
        """
        created = []
        with self.uow.transaction():
            for name in RESERVED_CATEGORY_NAMES:
                if self.uow.categories.exists_by_normalized_name(user_id, name):
                    continue
                category = Category(user_id=user_id, name=name)
                self.uow.categories.create(category)
                created.append(category)
        return created

    @staticmethod
    def _checked_name(name: str) -> str:
        normalized = normalize_category_name(name)
        if any(ch.isdigit() for ch in normalized):
            raise ValidationError("Name must not contain digits", ErrorKind.NAME_CONTAINS_DIGITS)
        if normalized in RESERVED_CATEGORY_NAMES:
            raise ValidationError("Cannot create a reserved category", ErrorKind.RESERVED_CATEGORY)
        return normalized
