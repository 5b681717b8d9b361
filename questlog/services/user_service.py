"""User registration, authentication and profile service."""
from typing import Optional
import logging
import uuid

from questlog.core.exceptions import ConflictError, ErrorKind, NotFoundError
from questlog.core.security import get_password_hash, verify_password
from questlog.db.unit_of_work import UnitOfWork
from questlog.domain.entities import User, require_text
from questlog.services.category_service import CategoryService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, uow: UnitOfWork, category_service: Optional[CategoryService] = None):
        self.uow = uow
        self.category_service = category_service or CategoryService(uow)

    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.uow.users.get_by_id(user_id)

    def get_by_name(self, name: str) -> Optional[User]:
        return self.uow.users.get_by_name(name.strip())

    def register(self, name: str, password: str) -> User:
        """Create a user together with its reserved categories.

        Raises:
            ValidationError: blank name or password
            ConflictError: the name is already taken
        """
        require_text(password, "Password")
        user = User(name=(name or "").strip(), password_hash=get_password_hash(password))
        with self.uow.transaction():
            if self.uow.users.exists_by_name(user.name):
                logger.warning("Registration refused, name %s is taken", user.name)
                raise ConflictError("User name is already taken", ErrorKind.DUPLICATE_NAME)
            self.uow.users.create(user)
            self.category_service.create_default_categories(user.id)
        logger.info("Registered user %s (%s)", user.name, user.id)
        return user

    def authenticate(self, name: str, password: str) -> Optional[User]:
        user = self.get_by_name(name or "")
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", name)
            return None
        return user

    def update_profile(self, user_id: uuid.UUID, name: str) -> User:
        with self.uow.transaction():
            user = self.uow.users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User was not found")
            renamed = user.renamed((name or "").strip())
            if renamed.name != user.name and self.uow.users.exists_by_name(renamed.name):
                raise ConflictError("User name is already taken", ErrorKind.DUPLICATE_NAME)
            self.uow.users.update(renamed)
        logger.info("User %s renamed to %s", user_id, renamed.name)
        return renamed
