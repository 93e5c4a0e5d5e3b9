"""
Tasks API Endpoints
===================

Route prefix: /api/tasks

Endpoints:
    GET    /api/tasks            — List all tasks, newest first
    POST   /api/tasks            — Create a task
    GET    /api/tasks/stats      — Completed-task counter
    POST   /api/tasks/complete   — Complete a task (removes it, counts it)
    DELETE /api/tasks/{task_id}  — Delete a task without counting it
"""

from fastapi import APIRouter, status

from app.dependencies import StatsServiceDep, TaskServiceDep
from app.schemas.common import BaseResponse
from app.schemas.task import (
    CompleteTaskRequest,
    CompletionResponse,
    StatsResponse,
    TaskCreate,
    TaskResponse,
)

router = APIRouter()


@router.get(
    "",
    response_model=BaseResponse[list[TaskResponse]],
)
async def list_tasks(task_service: TaskServiceDep):
    """
    Get all tasks, newest first.
    """
    tasks = await task_service.list_tasks()
    return BaseResponse[list[TaskResponse]](data=tasks)


@router.post(
    "",
    response_model=BaseResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    task_data: TaskCreate,
    task_service: TaskServiceDep,
):
    """
    Create a new task.

    ``duration`` is given in minutes (or seconds, per configuration) and
    stored in seconds. ``tags`` defaults to ``["general"]``.
    """
    task = await task_service.add_task(
        title=task_data.title,
        duration=task_data.duration,
        tags=task_data.tags,
    )
    return BaseResponse[TaskResponse](data=task, message="Task created successfully")


@router.get(
    "/stats",
    response_model=BaseResponse[StatsResponse],
)
async def get_stats(stats_service: StatsServiceDep):
    """
    Get the completed-task counter.
    """
    stats = await stats_service.get_stats()
    return BaseResponse[StatsResponse](data=stats)


@router.post(
    "/complete",
    response_model=BaseResponse[CompletionResponse],
)
async def complete_task(
    body: CompleteTaskRequest,
    task_service: TaskServiceDep,
):
    """
    Mark a task as completed.

    The task is removed and the completed counter goes up by one.
    """
    result = await task_service.complete_task(body.taskId)
    return BaseResponse[CompletionResponse](data=result, message="Task completed successfully")


@router.delete(
    "/{task_id}",
    response_model=BaseResponse[TaskResponse],
)
async def delete_task(
    task_id: str,
    task_service: TaskServiceDep,
):
    """
    Delete a task. Does not count as a completion.
    """
    task = await task_service.delete_task(task_id)
    return BaseResponse[TaskResponse](data=task, message="Task deleted successfully")
