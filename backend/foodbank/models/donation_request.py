"""Beneficiary donation request model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodbank.db.base import Base


class RequestStatus(str, Enum):
    """Lifecycle of a request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DonationRequest(Base):
    """A beneficiary's request for food. Never deleted."""

    __tablename__ = "donation_requests"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_request_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    food_type: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    unit_id: Mapped[Optional[int]] = mapped_column(ForeignKey("units.id"), nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.PENDING.value, nullable=False, index=True
    )
    admin_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship("User")
    unit: Mapped[Optional["Unit"]] = relationship("Unit")


# Forward references
from foodbank.models.user import User
from foodbank.models.unit import Unit
