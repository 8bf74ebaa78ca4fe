"""Database layer - engine/session factories, base models, and mixins."""

from activity_logger.core.database.base import Base, IntegerIDMixin, TimestampMixin
from activity_logger.core.database.session import (
    create_engine,
    create_session_factory,
    create_tables,
)


__all__ = [
    "Base",
    "IntegerIDMixin",
    "TimestampMixin",
    "create_engine",
    "create_session_factory",
    "create_tables",
]
