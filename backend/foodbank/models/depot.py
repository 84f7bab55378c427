"""Depot model."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodbank.db.base import Base


class Depot(Base):
    """Physical storage location for donated stock."""

    __tablename__ = "depots"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    batches: Mapped[list["InventoryBatch"]] = relationship("InventoryBatch", back_populates="depot")


# Forward references
from foodbank.models.inventory import InventoryBatch
