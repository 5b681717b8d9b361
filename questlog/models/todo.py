"""To-do model."""
import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship
from questlog.db.base import Base, utcnow


class ToDoRecord(Base):
    """Scheduled to-do item.

    ``category_name`` is a denormalized copy of the category's name kept in
    sync by the category rename/delete cascades. ``parent_id`` is a plain
    lineage value, not a foreign key.
    """

    __tablename__ = "todos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=False, index=True)
    category_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    time_block = Column(String(10), nullable=False)
    difficulty = Column(Integer, nullable=False, default=0)
    scheduled_date = Column(Date, nullable=False, index=True)
    deadline = Column(DateTime(timezone=True))
    completion_status = Column(Boolean, nullable=False, default=False)
    moved = Column(Boolean, nullable=False, default=False)
    parent_id = Column(Uuid)
    repeat_frequency = Column(String(10), nullable=False, default="None")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    user = relationship("UserRecord", back_populates="todos")
    category = relationship("CategoryRecord", back_populates="todos")
