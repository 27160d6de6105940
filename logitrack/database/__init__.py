from logitrack.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from logitrack.database.engine import async_session, engine, sync_engine
from logitrack.database.session import get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "sync_engine",
    "get_db",
]
