"""
Common Dependencies
===================

Shared dependencies used across the application.

The persistence gateway is process-scoped and injected into the services,
so tests can swap it out via ``app.dependency_overrides[get_gateway]``.
"""

import logging
from typing import Annotated

from fastapi import Depends

from app.config import settings
from app.core.errors import GatewayError
from app.db.gateway import PersistenceGateway, get_default_gateway
from app.services.stats_service import StatsService
from app.services.task_service import TaskService

logger = logging.getLogger(__name__)


def get_gateway() -> PersistenceGateway:
    """Return the shared gateway, or fail the request if the DB is not configured."""
    try:
        return get_default_gateway()
    except ValueError as exc:
        logger.error("gateway_unavailable reason=%s", exc)
        raise GatewayError(
            operation="connect",
            message="Persistence service is not configured",
        ) from exc


Gateway = Annotated[PersistenceGateway, Depends(get_gateway)]


def get_stats_service(gateway: Gateway) -> StatsService:
    return StatsService(gateway, stats_id=settings.STATS_RECORD_ID)


def get_task_service(
    gateway: Gateway,
    stats: Annotated[StatsService, Depends(get_stats_service)],
) -> TaskService:
    return TaskService(
        gateway,
        stats=stats,
        duration_unit=settings.DURATION_INPUT_UNIT,
    )


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
StatsServiceDep = Annotated[StatsService, Depends(get_stats_service)]
