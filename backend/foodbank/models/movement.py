"""Inventory movement ledger: one header per event, one detail per product moved."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodbank.db.base import Base


class TransactionKind(str, Enum):
    """Direction of a movement detail."""

    INGRESS = "ingress"  # Donation intake
    EGRESS = "egress"  # Delivery to a beneficiary


class MovementStatus(str, Enum):
    COMPLETED = "completed"


class MovementHeader(Base):
    """Append-only ledger header. Always has at least one detail."""

    __tablename__ = "movement_headers"

    id: Mapped[int] = mapped_column(primary_key=True)
    moved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    actor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    recipient_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(20), default=MovementStatus.COMPLETED.value, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    details: Mapped[list["MovementDetail"]] = relationship(
        "MovementDetail", back_populates="header", order_by="MovementDetail.id"
    )


class MovementDetail(Base):
    """Append-only ledger line: one product and the quantity moved."""

    __tablename__ = "movement_details"

    id: Mapped[int] = mapped_column(primary_key=True)
    header_id: Mapped[int] = mapped_column(
        ForeignKey("movement_headers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("donated_products.id"), nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    transaction_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    user_role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unit_id: Mapped[Optional[int]] = mapped_column(ForeignKey("units.id"), nullable=True)

    header: Mapped["MovementHeader"] = relationship("MovementHeader", back_populates="details")
    product: Mapped["DonatedProduct"] = relationship("DonatedProduct")
    unit: Mapped[Optional["Unit"]] = relationship("Unit")


# Forward references
from foodbank.models.product import DonatedProduct
from foodbank.models.unit import Unit
