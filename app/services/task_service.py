"""
Task Service
============

Business logic for listing, creating, deleting and completing tasks.

Completion removes the task and bumps the completed counter. The delete
runs first and acts as the de-duplication barrier: when two requests
complete the same task, only one of them gets the row back from
``DELETE ... RETURNING`` and goes on to increment. If the increment then
fails, the task is already gone and an ``InconsistencyError`` is raised so
the counter can be reconciled.
"""

import logging
import math
from numbers import Real
from typing import Any, Iterable, Optional
import uuid

from app.core.errors import (
    GatewayError,
    InconsistencyError,
    TaskNotFoundError,
    ValidationError,
)
from app.db.gateway import TASKS_TABLE, PersistenceGateway
from app.models.task import DEFAULT_TAGS, DURATION_MAX_SECONDS, TITLE_MAX_LENGTH
from app.schemas.task import CompletionResponse, TaskResponse
from app.services.gateway_ops import call_gateway
from app.services.stats_service import StatsService

logger = logging.getLogger(__name__)

SAMPLE_TASK = {
    "title": "Sample Task",
    "duration_minutes": 25,
    "tags": ["quick-win"],
}


# =============================================================================
# Input normalization
# =============================================================================

def to_seconds(duration: Any, unit: str = "minutes") -> int:
    """
    Validate a caller-supplied duration and convert it to whole seconds.

    Minutes are multiplied by 60; both units round half-up.
    """
    if duration is None:
        raise ValidationError("Title and duration are required", field="duration")
    if isinstance(duration, bool) or not isinstance(duration, Real):
        raise ValidationError("Duration must be a number", field="duration")
    value = float(duration)
    if not math.isfinite(value):
        raise ValidationError("Duration must be a finite number", field="duration")
    if value < 0:
        raise ValidationError("Duration must not be negative", field="duration")

    if unit == "minutes":
        value *= 60
    # Checked before flooring: huge minute values overflow to inf here
    if value + 0.5 >= DURATION_MAX_SECONDS + 1:
        raise ValidationError("Duration is too large", field="duration")
    return int(math.floor(value + 0.5))


def normalize_title(title: Any) -> str:
    """Strip the title and enforce presence and length."""
    if title is None or (isinstance(title, str) and not title.strip()):
        raise ValidationError("Title and duration are required", field="title")
    if not isinstance(title, str):
        raise ValidationError("Title must be text", field="title")
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters", field="title",
        )
    return title


def normalize_tags(tags: Optional[Iterable[Any]]) -> list[str]:
    """
    Clean a tag list: strip entries, drop blanks and duplicates, keep order.

    Falls back to ``["general"]`` when nothing is left.
    """
    if tags is None:
        return list(DEFAULT_TAGS)
    if isinstance(tags, (str, bytes)) or not isinstance(tags, (list, tuple)):
        raise ValidationError("Tags must be a list of strings", field="tags")

    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError("Tags must be a list of strings", field="tags")
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned or list(DEFAULT_TAGS)


def parse_task_id(task_id: Any) -> uuid.UUID:
    """Coerce a task id to a UUID; anything unparseable cannot exist."""
    if isinstance(task_id, uuid.UUID):
        return task_id
    try:
        return uuid.UUID(str(task_id).strip())
    except ValueError:
        raise TaskNotFoundError(task_id) from None


# =============================================================================
# Service
# =============================================================================

class TaskService:
    """Service for task operations."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        stats: Optional[StatsService] = None,
        duration_unit: str = "minutes",
    ):
        self.gateway = gateway
        self.stats = stats or StatsService(gateway)
        self.duration_unit = duration_unit

    # =========================================================================
    # Core CRUD
    # =========================================================================

    async def list_tasks(self) -> list[TaskResponse]:
        """All tasks, newest first."""
        rows = await call_gateway(
            "list_tasks",
            self.gateway.select_all(TASKS_TABLE, order_by="created_at", descending=True),
            table=TASKS_TABLE,
        )
        return [TaskResponse.model_validate(row) for row in rows]

    async def add_task(
        self,
        title: Any,
        duration: Any,
        tags: Optional[Iterable[Any]] = None,
    ) -> TaskResponse:
        """
        Validate, normalize and store a new task.

        ``duration`` is interpreted in the service's ``duration_unit`` and
        stored as seconds. Nothing is written if validation fails.
        """
        clean_title = normalize_title(title)
        seconds = to_seconds(duration, self.duration_unit)
        clean_tags = normalize_tags(tags)
        return await self._insert(clean_title, seconds, clean_tags)

    async def _insert(self, title: str, seconds: int, tags: list[str]) -> TaskResponse:
        row = await call_gateway(
            "add_task",
            self.gateway.insert(
                TASKS_TABLE, {"title": title, "duration": seconds, "tags": tags},
            ),
            table=TASKS_TABLE,
            title=title,
        )
        task = TaskResponse.model_validate(row)
        logger.info(
            "task_created task=%s duration_s=%d tags=%s",
            task.id, task.duration, ",".join(task.tags),
        )
        return task

    async def get_task(self, task_id: Any) -> TaskResponse:
        """Point-in-time lookup; raises ``TaskNotFoundError`` if absent."""
        key = parse_task_id(task_id)
        row = await call_gateway(
            "get_task",
            self.gateway.select_one(TASKS_TABLE, {"id": key}),
            task_id=str(key),
        )
        if row is None:
            raise TaskNotFoundError(key)
        return TaskResponse.model_validate(row)

    async def delete_task(self, task_id: Any) -> TaskResponse:
        """
        Remove a task without counting it as completed.

        Returns the removed task. Deleting an already-removed id raises
        ``TaskNotFoundError``.
        """
        key = parse_task_id(task_id)
        await self.get_task(key)

        removed = await call_gateway(
            "delete_task",
            self.gateway.delete_one(TASKS_TABLE, {"id": key}),
            task_id=str(key),
        )
        if removed is None:
            raise TaskNotFoundError(key)

        logger.info("task_deleted task=%s", key)
        return TaskResponse.model_validate(removed)

    # =========================================================================
    # Completion
    # =========================================================================

    async def complete_task(self, task_id: Any) -> CompletionResponse:
        """
        Remove a task and count it as completed.

        Raises:
            ValidationError     – if no task id was given.
            TaskNotFoundError   – if the task does not exist, or another
                                  request removed it first. No side effects.
            GatewayError        – if the lookup or delete failed. The task
                                  and the counter are unchanged.
            InconsistencyError  – if the task was removed but the counter
                                  increment failed.
        """
        if task_id is None or (isinstance(task_id, str) and not task_id.strip()):
            raise ValidationError("Task ID is required", field="taskId")

        key = parse_task_id(task_id)
        await self.get_task(key)

        removed = await call_gateway(
            "complete_task",
            self.gateway.delete_one(TASKS_TABLE, {"id": key}),
            task_id=str(key),
        )
        if removed is None:
            logger.info("task_complete_lost_race task=%s", key)
            raise TaskNotFoundError(key)

        try:
            completed = await self.stats.increment_completed()
        except GatewayError as exc:
            logger.error(
                "stats_inconsistent task=%s removed=%s reason=%s",
                key, removed, exc.message,
            )
            raise InconsistencyError(key, removed_task=removed) from exc

        logger.info("task_completed task=%s completed_tasks=%d", key, completed)
        return CompletionResponse(
            completedTasks=completed,
            task=TaskResponse.model_validate(removed),
        )

    # =========================================================================
    # Seeding
    # =========================================================================

    async def ensure_sample_task(self) -> Optional[TaskResponse]:
        """Insert the sample task when the table is empty."""
        existing = await call_gateway(
            "ensure_sample_task",
            self.gateway.select_all(TASKS_TABLE, limit=1),
            table=TASKS_TABLE,
        )
        if existing:
            return None

        return await self._insert(
            SAMPLE_TASK["title"],
            to_seconds(SAMPLE_TASK["duration_minutes"], "minutes"),
            list(SAMPLE_TASK["tags"]),
        )
