"""
Stats Models
============

SQLAlchemy model for the ``stats`` singleton table.
"""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Stats(Base):
    """
    Aggregate counters.

    Holds a single row (``id = "default"``) whose ``completed_tasks`` is
    only ever changed by an in-database increment.
    """

    __tablename__ = "stats"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
    )
    completed_tasks: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    __table_args__ = (
        CheckConstraint("completed_tasks >= 0", name="ck_stats_completed_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Stats(id={self.id}, completed_tasks={self.completed_tasks})>"
