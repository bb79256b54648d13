"""Database layer - session management, base models, and mixins."""

from app.core.database.base import (
    ArchivableMixin,
    Base,
    JSONType,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
    enum_type,
)
from app.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
    get_session_factory,
)
from app.core.database.transaction import atomic


__all__ = [
    "ArchivableMixin",
    "Base",
    "JSONType",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "atomic",
    "enum_type",
    "get_db",
    "get_session_factory",
]
