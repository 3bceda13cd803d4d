"""Database persistence layer for the shared cache."""

from .db import create_engine_for, drop_db, get_async_url, init_db, session_factory
from .models import Base, CacheRecord

__all__ = [
    "Base",
    "CacheRecord",
    "create_engine_for",
    "drop_db",
    "get_async_url",
    "init_db",
    "session_factory",
]
