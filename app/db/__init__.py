"""
Database Module
===============

Provides database session management, the base model and the
persistence gateway used by the services.
"""

from app.db.base import Base
from app.db.gateway import (
    DuplicateRecordError,
    PersistenceGateway,
    SQLAlchemyGateway,
    StoreError,
    get_default_gateway,
)
from app.db.session import close_db, get_session_factory, init_db

__all__ = [
    "Base",
    "DuplicateRecordError",
    "PersistenceGateway",
    "SQLAlchemyGateway",
    "StoreError",
    "close_db",
    "get_default_gateway",
    "get_session_factory",
    "init_db",
]
