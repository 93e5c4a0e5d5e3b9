"""
Task Models
===========

SQLAlchemy model for the ``tasks`` table.
"""

from datetime import datetime
import uuid

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


DEFAULT_TAGS = ("general",)
TITLE_MAX_LENGTH = 200
# Largest value the INTEGER duration column holds
DURATION_MAX_SECONDS = 2**31 - 1


def default_tags() -> list[str]:
    """Fresh list for the tags column default."""
    return list(DEFAULT_TAGS)


class Task(Base):
    """
    Task model.

    A unit of work with a title, a duration in seconds and a list of tags.
    Rows are only ever inserted and deleted, never updated.
    """

    __tablename__ = "tasks"

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Task details
    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )
    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=default_tags,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("duration >= 0", name="ck_task_duration_non_negative"),
        Index("idx_task_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title[:30]})>"
