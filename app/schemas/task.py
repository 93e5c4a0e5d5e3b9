"""
Task Schemas
============

Pydantic schemas for the task and stats endpoints.
"""

from datetime import datetime
from typing import Optional, Union
import uuid

from pydantic import BaseModel, Field, StrictFloat, StrictInt


# =============================================================================
# Request Schemas
# =============================================================================

class TaskCreate(BaseModel):
    """
    Request schema for creating a task.

    Fields are optional here so that missing values reach the service and
    are rejected there with a ``VALIDATION_ERROR``.
    """

    title: Optional[str] = None
    duration: Optional[Union[StrictInt, StrictFloat]] = Field(
        None,
        description="Duration in the configured input unit (minutes by default)",
    )
    tags: Optional[list[str]] = None


class CompleteTaskRequest(BaseModel):
    """Request schema for completing a task."""

    taskId: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================

class TaskResponse(BaseModel):
    """A stored task. ``duration`` is in seconds."""

    id: uuid.UUID
    title: str
    duration: int
    tags: list[str]
    created_at: datetime

    class Config:
        from_attributes = True


class StatsResponse(BaseModel):
    """Aggregate stats."""

    completedTasks: int


class CompletionResponse(BaseModel):
    """Result of completing a task."""

    completedTasks: int
    task: TaskResponse
