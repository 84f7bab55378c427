"""Donated product model."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodbank.db.base import Base, TimestampMixin


class DonatedProduct(Base, TimestampMixin):
    """A donated good. Stock for it is held in inventory batches per depot."""

    __tablename__ = "donated_products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unit_id: Mapped[Optional[int]] = mapped_column(ForeignKey("units.id"), nullable=True)
    expires_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    donated_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    unit: Mapped[Optional["Unit"]] = relationship("Unit")
    batches: Mapped[list["InventoryBatch"]] = relationship("InventoryBatch", back_populates="product")


# Forward references
from foodbank.models.unit import Unit
from foodbank.models.inventory import InventoryBatch
