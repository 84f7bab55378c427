"""Unit conversion resolver.

Factors come from the ``unit_conversions`` table, where only one direction
is stored per pair:

    qty_in_destination = qty_in_origin * factor

The inverse direction is derived as 1 / factor. Conversions are only looked
up between units of the same magnitude group, and never chained through a
third unit. "No conversion" is a valid answer (None), not an error.
"""

import logging
from decimal import Decimal
from typing import Optional

from foodbank.db.row_store import RowStore, RowStoreError
from foodbank.models.unit import Unit, UnitConversion
from foodbank.services.allocation.types import UnitRecord, to_decimal

logger = logging.getLogger(__name__)

ONE = Decimal("1")


class UnitConversionResolver:
    """Resolves multiplicative factors between unit ids."""

    def __init__(self, store: RowStore):
        self.store = store

    async def resolve(self, origin_unit_id: int, destination_unit_id: int) -> Optional[Decimal]:
        """Factor such that qty_destination = qty_origin * factor, or None."""
        if origin_unit_id == destination_unit_id:
            return ONE

        try:
            rows = await self.store.read_by_filter(
                Unit, Unit.id.in_([origin_unit_id, destination_unit_id])
            )
            units = {row["id"]: UnitRecord.from_row(row) for row in rows}
            origin = units.get(origin_unit_id)
            destination = units.get(destination_unit_id)

            if origin is None or destination is None:
                logger.warning(
                    f"Cannot resolve conversion {origin_unit_id} -> {destination_unit_id}: unit not found"
                )
                return None

            if origin.magnitude_id != destination.magnitude_id:
                logger.warning(
                    f"Units '{origin.symbol}' and '{destination.symbol}' belong to different "
                    f"magnitude groups ({origin.magnitude_id} vs {destination.magnitude_id})"
                )
                return None

            direct = await self._stored_factor(origin_unit_id, destination_unit_id)
            if direct is not None:
                return direct

            inverse = await self._stored_factor(destination_unit_id, origin_unit_id)
            if inverse is not None:
                return ONE / inverse

        except RowStoreError as e:
            logger.error(f"Error resolving conversion {origin_unit_id} -> {destination_unit_id}: {e}")
            return None

        logger.warning(f"No conversion stored between unit {origin_unit_id} and unit {destination_unit_id}")
        return None

    async def convert(
        self,
        quantity: Decimal,
        origin_unit_id: int,
        destination_unit_id: int,
    ) -> Optional[Decimal]:
        """Convert ``quantity`` or return None when no conversion exists."""
        factor = await self.resolve(origin_unit_id, destination_unit_id)
        if factor is None:
            return None
        return quantity * factor

    async def _stored_factor(self, origin_unit_id: int, destination_unit_id: int) -> Optional[Decimal]:
        rows = await self.store.read_by_filter(
            UnitConversion,
            UnitConversion.origin_unit_id == origin_unit_id,
            UnitConversion.destination_unit_id == destination_unit_id,
            limit=1,
        )
        if not rows:
            return None

        factor = to_decimal(rows[0]["factor"])
        if factor <= 0:
            logger.warning(
                f"Ignoring non-positive conversion factor {factor} for {origin_unit_id} -> {destination_unit_id}"
            )
            return None
        return factor
