"""Immutable records and results of the allocation engine.

Rows coming back from the row store are normalized into these records right
after each fetch (``from_row``); nothing downstream sees raw row mappings.
Results are frozen and folded step by step, so no counter is shared or
mutated across awaits.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

ZERO = Decimal("0")
# Matches the scale of the quantity columns.
QUANTITY_QUANTUM = Decimal("0.001")


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored quantity to Decimal (None -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Decimal) -> Decimal:
    return value.quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_nonzero(value: Decimal) -> Decimal:
    """Like ``quantize``, but a positive value never rounds down to zero."""
    rounded = quantize(value)
    if rounded <= 0 and value > 0:
        return QUANTITY_QUANTUM
    return rounded


@dataclass(frozen=True)
class UnitRecord:
    id: int
    name: str
    symbol: str
    magnitude_id: int
    is_base: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UnitRecord":
        return cls(
            id=row["id"],
            name=row.get("name") or "",
            symbol=row.get("symbol") or "",
            magnitude_id=row["magnitude_id"],
            is_base=bool(row.get("is_base")),
        )


@dataclass(frozen=True)
class ProductRecord:
    id: int
    name: str
    unit_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProductRecord":
        return cls(
            id=row["id"],
            name=row.get("name") or "Unnamed product",
            unit_id=row.get("unit_id"),
        )


@dataclass(frozen=True)
class BatchRecord:
    id: int
    product_id: int
    depot_id: int
    quantity_available: Decimal
    updated_at: Optional[datetime] = None
    version: int = 1

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BatchRecord":
        return cls(
            id=row["id"],
            product_id=row["product_id"],
            depot_id=row["depot_id"],
            quantity_available=max(to_decimal(row.get("quantity_available")), ZERO),
            updated_at=row.get("updated_at"),
            version=row.get("version") or 1,
        )


@dataclass(frozen=True)
class RequestRecord:
    id: int
    user_id: int
    food_type: str
    quantity: Decimal
    status: str
    unit_id: Optional[int] = None
    admin_comment: Optional[str] = None
    responded_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RequestRecord":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            food_type=(row.get("food_type") or "").strip(),
            quantity=to_decimal(row.get("quantity")),
            status=row["status"],
            unit_id=row.get("unit_id"),
            admin_comment=row.get("admin_comment"),
            responded_at=row.get("responded_at"),
        )


@dataclass(frozen=True)
class BatchDraw:
    """Quantity successfully removed from one batch."""

    batch_id: int
    depot_id: int
    taken: Decimal
    available_after: Decimal


@dataclass(frozen=True)
class DepletionResult:
    """Outcome of depleting an ordered list of batches.

    ``delivered + remaining == required`` always holds. ``batches_failed``
    counts batches whose write could not be persisted and were skipped.
    """

    required: Decimal
    delivered: Decimal = ZERO
    remaining: Decimal = ZERO
    batches_attempted: int = 0
    batches_touched: int = 0
    batches_failed: int = 0
    draws: Tuple[BatchDraw, ...] = ()

    @classmethod
    def start(cls, required: Decimal) -> "DepletionResult":
        return cls(required=required, remaining=required)

    def with_draw(self, draw: BatchDraw) -> "DepletionResult":
        if draw.taken <= 0:
            return replace(self, batches_attempted=self.batches_attempted + 1)
        return replace(
            self,
            delivered=self.delivered + draw.taken,
            remaining=self.remaining - draw.taken,
            batches_attempted=self.batches_attempted + 1,
            batches_touched=self.batches_touched + 1,
            draws=self.draws + (draw,),
        )

    def with_failure(self) -> "DepletionResult":
        return replace(
            self,
            batches_attempted=self.batches_attempted + 1,
            batches_failed=self.batches_failed + 1,
        )

    @property
    def has_persistence_failures(self) -> bool:
        return self.batches_failed > 0


@dataclass(frozen=True)
class DeliveredDetail:
    """Quantity delivered from one product, in that product's unit."""

    product: ProductRecord
    quantity: Decimal

    @property
    def unit_id(self) -> Optional[int]:
        return self.product.unit_id


class AllocationOutcome(str, Enum):
    FULFILLED = "fulfilled"
    PARTIAL = "partial"
    NO_STOCK = "no_stock"
    ERROR = "error"


@dataclass(frozen=True)
class AllocationResult:
    """Business result of allocating one approved request.

    ``remaining`` is expressed in the request's unit, except when a product
    had no usable conversion; then it stays in that product's unit.
    """

    outcome: AllocationOutcome
    requested: Decimal
    remaining: Decimal
    delivered: Tuple[DeliveredDetail, ...] = ()
    batches_attempted: int = 0
    batches_touched: int = 0
    batches_failed: int = 0
    conversion_missing: bool = False
    products_matched: int = 0

    @property
    def delivered_in_request_units(self) -> Decimal:
        if not self.delivered:
            return ZERO
        return max(self.requested - self.remaining, ZERO)

    @property
    def warning(self) -> bool:
        return self.outcome is not AllocationOutcome.FULFILLED or self.conversion_missing


@dataclass(frozen=True)
class ProductAllocation:
    """One product's contribution to an allocation."""

    product: ProductRecord
    depletion: DepletionResult
    remaining_in_request_units: Decimal
    conversion_missing: bool = False


@dataclass(frozen=True)
class AllocationProgress:
    """Accumulator folded over matched products, in matcher order."""

    requested: Decimal
    remaining: Decimal
    delivered: Tuple[DeliveredDetail, ...] = ()
    batches_attempted: int = 0
    batches_touched: int = 0
    batches_failed: int = 0
    conversion_missing: bool = False
    products_matched: int = 0

    @classmethod
    def start(cls, requested: Decimal) -> "AllocationProgress":
        return cls(requested=requested, remaining=requested)

    def matched(self, count: int) -> "AllocationProgress":
        return replace(self, products_matched=count)

    def fold(self, step: ProductAllocation) -> "AllocationProgress":
        delivered = self.delivered
        if step.depletion.delivered > 0:
            delivered = delivered + (DeliveredDetail(step.product, step.depletion.delivered),)
        return replace(
            self,
            remaining=max(step.remaining_in_request_units, ZERO),
            delivered=delivered,
            batches_attempted=self.batches_attempted + step.depletion.batches_attempted,
            batches_touched=self.batches_touched + step.depletion.batches_touched,
            batches_failed=self.batches_failed + step.depletion.batches_failed,
            conversion_missing=self.conversion_missing or step.conversion_missing,
        )

    def classify(self) -> AllocationOutcome:
        if not self.delivered:
            return AllocationOutcome.NO_STOCK
        if self.remaining <= 0:
            return AllocationOutcome.FULFILLED
        return AllocationOutcome.PARTIAL

    def finish(self, outcome: Optional[AllocationOutcome] = None) -> AllocationResult:
        return AllocationResult(
            outcome=outcome or self.classify(),
            requested=self.requested,
            remaining=self.remaining,
            delivered=self.delivered,
            batches_attempted=self.batches_attempted,
            batches_touched=self.batches_touched,
            batches_failed=self.batches_failed,
            conversion_missing=self.conversion_missing,
            products_matched=self.products_matched,
        )
