"""
Stats Service
=============

Owns the singleton ``stats`` row holding the completed-task counter.

The counter is only ever changed through the gateway's atomic increment,
never by writing back a value read earlier, so concurrent completions each
add exactly one.
"""

import logging

from app.core.errors import GatewayError
from app.db.gateway import STATS_TABLE, DuplicateRecordError, PersistenceGateway
from app.schemas.task import StatsResponse
from app.services.gateway_ops import call_gateway

logger = logging.getLogger(__name__)

DEFAULT_STATS_ID = "default"
COUNTER_FIELD = "completed_tasks"


class StatsService:
    """Service for the completed-task counter."""

    def __init__(self, gateway: PersistenceGateway, stats_id: str = DEFAULT_STATS_ID):
        self.gateway = gateway
        self.stats_id = stats_id

    @property
    def _key(self) -> dict:
        return {"id": self.stats_id}

    async def _create(self, initial: int) -> dict | None:
        """
        Insert the stats row with ``initial`` as its count.

        Returns None when another request created the row first.
        """
        try:
            return await self.gateway.insert(
                STATS_TABLE, {"id": self.stats_id, COUNTER_FIELD: initial},
            )
        except DuplicateRecordError:
            logger.info("stats_create_raced stats_id=%s", self.stats_id)
            return None

    async def get_stats(self) -> StatsResponse:
        """
        Return the current counter, creating the row at zero if absent.
        """
        row = await call_gateway(
            "get_stats",
            self.gateway.select_one(STATS_TABLE, self._key),
            stats_id=self.stats_id,
        )
        if row is None:
            row = await call_gateway(
                "get_stats",
                self._create(0),
                stats_id=self.stats_id,
            )
            if row is None:
                row = await call_gateway(
                    "get_stats",
                    self.gateway.select_one(STATS_TABLE, self._key),
                    stats_id=self.stats_id,
                )
            if row is None:
                raise GatewayError(operation="get_stats", message="Stats record unavailable")
            logger.info("stats_initialized stats_id=%s", self.stats_id)

        return StatsResponse(completedTasks=row[COUNTER_FIELD])

    async def increment_completed(self) -> int:
        """
        Atomically add one to the counter and return the new value.

        A missing row is created with a count of 1. If a concurrent request
        creates it first, the increment is applied to that row instead.
        """
        row = await call_gateway(
            "increment_completed",
            self.gateway.atomic_increment(STATS_TABLE, self._key, COUNTER_FIELD, 1),
            stats_id=self.stats_id,
        )
        if row is None:
            row = await call_gateway(
                "increment_completed",
                self._create(1),
                stats_id=self.stats_id,
            )
            if row is None:
                row = await call_gateway(
                    "increment_completed",
                    self.gateway.atomic_increment(STATS_TABLE, self._key, COUNTER_FIELD, 1),
                    stats_id=self.stats_id,
                )
            if row is None:
                raise GatewayError(
                    operation="increment_completed",
                    message="Stats record unavailable",
                )

        return row[COUNTER_FIELD]
