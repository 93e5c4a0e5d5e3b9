"""
Gateway Call Guard
==================

Runs a persistence gateway call and converts store failures into the
application's ``GatewayError``, logging the operation and identifiers.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, TypeVar

from app.core.errors import GatewayError
from app.db.gateway import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_gateway(operation: str, awaitable: Awaitable[T], **context: Any) -> T:
    """
    Await a gateway call, re-raising ``StoreError`` as ``GatewayError``.

    ``context`` carries identifiers (table, task id, ...) for the log line
    and the error payload.
    """
    try:
        return await awaitable
    except StoreError as exc:
        failed_at = datetime.now(timezone.utc).isoformat()
        logger.error(
            "gateway_error operation=%s store_op=%s table=%s context=%s at=%s error=%s",
            operation, exc.operation, exc.table, context, failed_at, exc,
        )
        raise GatewayError(operation=operation, failed_at=failed_at) from exc
