"""SQLAlchemy declarative base and common utilities."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class VersionMixin:
    """Optimistic locking via a version counter.

    Models using this mixin gain a ``version`` column that starts at 1.
    Writers pass the version they read as an update precondition and bump
    it in the same statement; a write that matches no row lost the race.
    """

    version: Mapped[int] = mapped_column(Integer, default=1, server_default="1", nullable=False)
