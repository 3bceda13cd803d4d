"""
SQLAlchemy ORM models for weathercache.

Defines the shared cache table used by the SQL cache store.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class CacheRecord(Base):
    """One cached upstream response.

    Rows outlive ``expires_at`` so expired responses stay readable as
    stale data.
    """

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=True)
    cached_at: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[float] = mapped_column(Float, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<CacheRecord(key='{self.key}', cached_at={self.cached_at})>"
