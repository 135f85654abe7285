"""Database layer - engine, base classes, and session scopes."""

from inventory_kernel.db.base import UUID, Base, UUIDString
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    enable_sqlite_savepoints,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "init_engine_from_url",
    "enable_sqlite_savepoints",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "UUIDString",
    "UUID",
]
