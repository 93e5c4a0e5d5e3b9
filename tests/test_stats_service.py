"""
Stats Service Tests
===================

Tests for the completed-task counter: lazy creation, atomic increments
and races on first creation.
"""

import asyncio

import pytest

from app.core.errors import GatewayError
from app.db.gateway import STATS_TABLE
from app.services.stats_service import StatsService

from tests.fakes import FakeGateway


class TestGetStats:
    """Tests for StatsService.get_stats"""

    @pytest.mark.asyncio
    async def test_fresh_store_returns_and_persists_zero(self, stats_service, gateway):
        stats = await stats_service.get_stats()

        assert stats.completedTasks == 0
        assert gateway.tables[STATS_TABLE]["default"] == {"id": "default", "completed_tasks": 0}

    @pytest.mark.asyncio
    async def test_reads_existing_value_without_writing(self, stats_service, gateway):
        gateway.tables[STATS_TABLE]["default"] = {"id": "default", "completed_tasks": 5}

        stats = await stats_service.get_stats()

        assert stats.completedTasks == 5
        assert gateway.writes() == []

    @pytest.mark.asyncio
    async def test_concurrent_first_reads_create_one_row(self, stats_service, gateway):
        results = await asyncio.gather(*(stats_service.get_stats() for _ in range(3)))

        assert [r.completedTasks for r in results] == [0, 0, 0]
        assert len(gateway.tables[STATS_TABLE]) == 1

    @pytest.mark.asyncio
    async def test_custom_record_id(self, gateway):
        service = StatsService(gateway, stats_id="team-a")

        await service.get_stats()

        assert "team-a" in gateway.tables[STATS_TABLE]

    @pytest.mark.asyncio
    async def test_store_failure_raises_gateway_error(self, stats_service, gateway):
        gateway.fail_on("select_one", STATS_TABLE)

        with pytest.raises(GatewayError) as exc_info:
            await stats_service.get_stats()

        assert exc_info.value.operation == "get_stats"


class TestIncrementCompleted:
    """Tests for StatsService.increment_completed"""

    @pytest.mark.asyncio
    async def test_creates_row_at_one(self, stats_service, gateway):
        assert await stats_service.increment_completed() == 1
        assert gateway.completed_count() == 1

    @pytest.mark.asyncio
    async def test_uses_atomic_increment_not_read_then_write(self, stats_service, gateway):
        gateway.tables[STATS_TABLE]["default"] = {"id": "default", "completed_tasks": 1}

        assert await stats_service.increment_completed() == 2
        assert gateway.calls == [("atomic_increment", STATS_TABLE)]

    @pytest.mark.asyncio
    async def test_no_lost_updates_under_concurrency(self, stats_service, gateway):
        gateway.tables[STATS_TABLE]["default"] = {"id": "default", "completed_tasks": 0}

        results = await asyncio.gather(*(stats_service.increment_completed() for _ in range(10)))

        assert sorted(results) == list(range(1, 11))
        assert gateway.completed_count() == 10

    @pytest.mark.asyncio
    async def test_create_race_falls_back_to_increment(self):
        """If another request creates the row between our increment and insert, count onto it."""

        class RacingGateway(FakeGateway):
            async def insert(self, table, record):
                if table == STATS_TABLE:
                    self.tables[STATS_TABLE]["default"] = {"id": "default", "completed_tasks": 4}
                return await super().insert(table, record)

        gateway = RacingGateway()
        service = StatsService(gateway)

        assert await service.increment_completed() == 5
        assert gateway.calls == [
            ("atomic_increment", STATS_TABLE),
            ("insert", STATS_TABLE),
            ("atomic_increment", STATS_TABLE),
        ]

    @pytest.mark.asyncio
    async def test_store_failure_raises_gateway_error(self, stats_service, gateway):
        gateway.fail_on("atomic_increment", STATS_TABLE)

        with pytest.raises(GatewayError):
            await stats_service.increment_completed()
