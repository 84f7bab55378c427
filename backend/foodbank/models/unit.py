"""Measurement units and the conversions between them."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodbank.db.base import Base


class MagnitudeType(Base):
    """A class of mutually convertible units (mass, volume, count)."""

    __tablename__ = "magnitude_types"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    units: Mapped[list["Unit"]] = relationship("Unit", back_populates="magnitude")


class Unit(Base):
    """Unit of measure. Reference data, never mutated by the engine."""

    __tablename__ = "units"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    magnitude_id: Mapped[int] = mapped_column(
        ForeignKey("magnitude_types.id"), nullable=False, index=True
    )
    is_base: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    magnitude: Mapped["MagnitudeType"] = relationship("MagnitudeType", back_populates="units")


class UnitConversion(Base):
    """qty_in_destination = qty_in_origin * factor.

    Only one direction is stored per pair; the inverse is 1 / factor.
    """

    __tablename__ = "unit_conversions"
    __table_args__ = (
        UniqueConstraint("origin_unit_id", "destination_unit_id", name="uq_conversion_pair"),
        CheckConstraint("factor > 0", name="ck_conversion_factor_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    origin_unit_id: Mapped[int] = mapped_column(ForeignKey("units.id"), nullable=False, index=True)
    destination_unit_id: Mapped[int] = mapped_column(ForeignKey("units.id"), nullable=False, index=True)
    factor: Mapped[Decimal] = mapped_column(Numeric(18, 9), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
