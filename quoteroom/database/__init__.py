from quoteroom.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from quoteroom.database.engine import async_session, engine
from quoteroom.database.session import get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
]
