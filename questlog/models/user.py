"""User model."""
import uuid
from sqlalchemy import Column, String, DateTime, Integer, Uuid
from sqlalchemy.orm import relationship
from questlog.db.base import Base, utcnow


class UserRecord(Base):
    """Registered user with accumulated experience."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    experience = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    categories = relationship("CategoryRecord", back_populates="user", cascade="all, delete-orphan")
    todos = relationship("ToDoRecord", back_populates="user", cascade="all, delete-orphan")
