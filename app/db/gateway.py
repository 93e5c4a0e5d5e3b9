"""
Persistence Gateway
===================

Table-level access to the managed Postgres store.

The services talk to storage only through the five operations of
``PersistenceGateway``; records are plain dicts keyed by column name.
``SQLAlchemyGateway`` implements them with SQLAlchemy Core statements, each
in its own short transaction, so every call is atomic on its own:

- ``delete_one`` is ``DELETE ... RETURNING``: when two requests delete the
  same row, exactly one of them gets the row back.
- ``atomic_increment`` is ``UPDATE ... SET col = col + :delta RETURNING``,
  evaluated by the database, so concurrent increments never lose updates.

Driver and SQL failures are translated into ``StoreError`` (or its
``DuplicateRecordError`` subclass for unique-key violations) so no
SQLAlchemy/asyncpg exception type leaks past this module.
"""

import logging
from functools import lru_cache
from typing import Any, Mapping, Optional, Protocol

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import get_session_factory
from app.models import Stats, Task

logger = logging.getLogger(__name__)

TASKS_TABLE = "tasks"
STATS_TABLE = "stats"

TABLES: dict[str, Table] = {
    TASKS_TABLE: Task.__table__,
    STATS_TABLE: Stats.__table__,
}

Record = dict[str, Any]


# =============================================================================
# Errors
# =============================================================================

class StoreError(Exception):
    """A gateway operation failed (connection, timeout, SQL error)."""

    def __init__(self, operation: str, table: str, message: str):
        self.operation = operation
        self.table = table
        super().__init__(f"{operation} on {table} failed: {message}")


class DuplicateRecordError(StoreError):
    """Insert violated a unique or primary key constraint."""


# =============================================================================
# Contract
# =============================================================================

class PersistenceGateway(Protocol):
    """Operations the services need from the store."""

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        """Insert a row and return it with server-generated columns."""

    async def select_all(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        """Return every row matching ``filters``."""

    async def select_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Record]:
        """Return the matching row or None."""

    async def delete_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Record]:
        """Delete the matching row and return it, or None if nothing matched."""

    async def atomic_increment(
        self,
        table: str,
        filters: Mapping[str, Any],
        field: str,
        delta: int,
    ) -> Optional[Record]:
        """Add ``delta`` to ``field`` in the store and return the updated row."""


# =============================================================================
# SQLAlchemy implementation
# =============================================================================

class SQLAlchemyGateway:
    """``PersistenceGateway`` backed by an async SQLAlchemy session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tables: Optional[Mapping[str, Table]] = None,
    ):
        self._session_factory = session_factory
        self._tables = dict(tables or TABLES)

    # -------------------------------------------------------------------------
    # Statement builders
    # -------------------------------------------------------------------------

    def _table(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise ValueError(f"Unknown table: {name}") from None

    @staticmethod
    def _where(table: Table, filters: Optional[Mapping[str, Any]]) -> list:
        conditions = []
        for column, value in (filters or {}).items():
            if column not in table.c:
                raise ValueError(f"Unknown column {table.name}.{column}")
            conditions.append(table.c[column] == value)
        return conditions

    def insert_stmt(self, table_name: str, record: Mapping[str, Any]):
        table = self._table(table_name)
        return insert(table).values(dict(record)).returning(*table.c)

    def select_stmt(
        self,
        table_name: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ):
        table = self._table(table_name)
        stmt = select(table).where(*self._where(table, filters))
        if order_by is not None:
            if order_by not in table.c:
                raise ValueError(f"Unknown column {table.name}.{order_by}")
            column = table.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def delete_stmt(self, table_name: str, filters: Mapping[str, Any]):
        table = self._table(table_name)
        return delete(table).where(*self._where(table, filters)).returning(*table.c)

    def increment_stmt(
        self,
        table_name: str,
        filters: Mapping[str, Any],
        field: str,
        delta: int,
    ):
        table = self._table(table_name)
        if field not in table.c:
            raise ValueError(f"Unknown column {table.name}.{field}")
        return (
            update(table)
            .where(*self._where(table, filters))
            .values({field: table.c[field] + delta})
            .returning(*table.c)
        )

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def _execute(self, operation: str, table: str, stmt):
        """Run ``stmt`` in its own transaction and return the result rows."""
        try:
            async with self._session_factory.begin() as session:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
        except IntegrityError as exc:
            raise DuplicateRecordError(operation, table, str(exc.orig or exc)) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(operation, table, str(exc)) from exc

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        rows = await self._execute("insert", table, self.insert_stmt(table, record))
        return rows[0]

    async def select_all(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        stmt = self.select_stmt(table, filters, order_by, descending, limit)
        return await self._execute("select_all", table, stmt)

    async def select_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Record]:
        rows = await self._execute("select_one", table, self.select_stmt(table, filters, limit=1))
        return rows[0] if rows else None

    async def delete_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Record]:
        rows = await self._execute("delete_one", table, self.delete_stmt(table, filters))
        if len(rows) > 1:
            logger.warning(
                "delete_one matched multiple rows table=%s filters=%s count=%d",
                table, dict(filters), len(rows),
            )
        return rows[0] if rows else None

    async def atomic_increment(
        self,
        table: str,
        filters: Mapping[str, Any],
        field: str,
        delta: int,
    ) -> Optional[Record]:
        stmt = self.increment_stmt(table, filters, field, delta)
        rows = await self._execute("atomic_increment", table, stmt)
        return rows[0] if rows else None


@lru_cache
def get_default_gateway() -> SQLAlchemyGateway:
    """
    Process-wide gateway over the shared session factory.

    Raises ``ValueError`` while the database URL is not configured; the
    failure is not cached so a later call can succeed.
    """
    return SQLAlchemyGateway(get_session_factory())
