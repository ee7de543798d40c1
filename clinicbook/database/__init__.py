"""Database engine, sessions and declarative base."""

from .async_db import (
    check_async_db_connection,
    close_async_db,
    create_all_tables,
    get_async_db,
    get_async_db_context,
)
from .base import Base, TimestampMixin

__all__ = [
    "Base",
    "TimestampMixin",
    "check_async_db_connection",
    "close_async_db",
    "create_all_tables",
    "get_async_db",
    "get_async_db_context",
]
