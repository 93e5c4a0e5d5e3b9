"""
Pydantic Schemas
================

Request/response schemas for API validation.
"""

from app.schemas.common import (
    BaseResponse,
    ErrorDetail,
    ErrorResponse,
)
from app.schemas.task import (
    CompleteTaskRequest,
    CompletionResponse,
    StatsResponse,
    TaskCreate,
    TaskResponse,
)

__all__ = [
    "BaseResponse",
    "CompleteTaskRequest",
    "CompletionResponse",
    "ErrorDetail",
    "ErrorResponse",
    "StatsResponse",
    "TaskCreate",
    "TaskResponse",
]
