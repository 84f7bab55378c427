"""Inventory batch model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodbank.db.base import Base, VersionMixin


class InventoryBatch(Base, VersionMixin):
    """Quantity of one product available at one depot.

    Decremented only by approval allocation, incremented only by donation intake.
    """

    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity_available >= 0", name="ck_inventory_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("donated_products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    depot_id: Mapped[int] = mapped_column(
        ForeignKey("depots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity_available: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, index=True
    )

    product: Mapped["DonatedProduct"] = relationship("DonatedProduct", back_populates="batches")
    depot: Mapped["Depot"] = relationship("Depot", back_populates="batches")


# Forward references
from foodbank.models.product import DonatedProduct
from foodbank.models.depot import Depot
