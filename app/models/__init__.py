"""
Database Models
===============

SQLAlchemy ORM models for all database entities.

All models are imported here to ensure they are registered
with SQLAlchemy's metadata.
"""

from app.models.stats import Stats
from app.models.task import DEFAULT_TAGS, TITLE_MAX_LENGTH, Task

__all__ = [
    "DEFAULT_TAGS",
    "TITLE_MAX_LENGTH",
    # Stats
    "Stats",
    # Task
    "Task",
]
