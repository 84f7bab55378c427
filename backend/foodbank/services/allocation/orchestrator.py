"""Allocation orchestrator - runs inventory allocation for one approved request.

Flow:
1. Match candidate products for the request's food type
2. For each product, in matcher order, while something is still required:
   a. Locate batches with stock (stalest first)
   b. Convert the remaining quantity from the request unit to the product unit
      (no conversion -> use the raw quantity and flag a warning)
   c. Deplete the batches
   d. Convert what is still missing back into the request unit
3. Classify the outcome: fulfilled / partial / no_stock, or error when a
   lookup fails midway

Products and batches are processed strictly one after another; each store
call is awaited before the next one is issued, so which stock is consumed
first is deterministic.
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from foodbank.db.row_store import RowStore
from foodbank.services.allocation.conversion import UnitConversionResolver
from foodbank.services.allocation.depletion import BatchDepletionAllocator
from foodbank.services.allocation.locator import StockLocator
from foodbank.services.allocation.matcher import ProductMatcher
from foodbank.services.allocation.types import (
    ZERO,
    AllocationOutcome,
    AllocationProgress,
    AllocationResult,
    DepletionResult,
    ProductAllocation,
    ProductRecord,
    RequestRecord,
    quantize_nonzero,
)

logger = logging.getLogger(__name__)


class AllocationOrchestrator:

    def __init__(
        self,
        store: RowStore,
        resolver: Optional[UnitConversionResolver] = None,
        locator: Optional[StockLocator] = None,
        matcher: Optional[ProductMatcher] = None,
        allocator: Optional[BatchDepletionAllocator] = None,
    ):
        self.resolver = resolver or UnitConversionResolver(store)
        self.locator = locator or StockLocator(store)
        self.matcher = matcher or ProductMatcher(store)
        self.allocator = allocator or BatchDepletionAllocator(store)

    async def allocate(self, request: RequestRecord) -> AllocationResult:
        """Deplete inventory for ``request``. Never raises; failures classify as ERROR."""
        progress = AllocationProgress.start(request.quantity)

        try:
            products = await self.matcher.match(request.food_type)
            if not products:
                return progress.finish(AllocationOutcome.NO_STOCK)
            progress = progress.matched(len(products))

            for product in products:
                if progress.remaining <= 0:
                    break
                step = await self._allocate_product(request, product, progress.remaining)
                progress = progress.fold(step)

        except Exception as e:
            logger.error(f"Error allocating inventory for request {request.id}: {e}", exc_info=True)
            return progress.finish(AllocationOutcome.ERROR)

        result = progress.finish()
        logger.info(
            f"Request {request.id} allocation {result.outcome.value}: "
            f"{len(result.delivered)} product(s), {result.batches_touched} batch(es) written, "
            f"{result.remaining} still missing"
        )
        return result

    async def _allocate_product(
        self,
        request: RequestRecord,
        product: ProductRecord,
        remaining: Decimal,
    ) -> ProductAllocation:
        batches = await self.locator.find_batches(product.id)
        if not batches:
            logger.info(f"No stock available for '{product.name}'")
            return ProductAllocation(
                product=product,
                depletion=DepletionResult.start(remaining),
                remaining_in_request_units=remaining,
            )

        needed, converted = await self._to_inventory_units(remaining, request, product)
        depletion = await self.allocator.allocate(needed, batches)

        leftover = depletion.remaining
        if leftover > 0 and converted:
            leftover = await self._to_request_units(leftover, request, product)

        return ProductAllocation(
            product=product,
            depletion=depletion,
            remaining_in_request_units=max(leftover, ZERO),
            conversion_missing=not converted,
        )

    async def _to_inventory_units(
        self,
        quantity: Decimal,
        request: RequestRecord,
        product: ProductRecord,
    ) -> Tuple[Decimal, bool]:
        """Quantity in the product's unit, and whether a conversion was available."""
        if product.unit_id is None:
            logger.warning(
                f"Product '{product.name}' has no unit; using quantity {quantity} without conversion"
            )
            return quantity, False
        if request.unit_id is None:
            logger.warning(
                f"Request {request.id} has no unit; using quantity {quantity} without conversion"
            )
            return quantity, False
        if request.unit_id == product.unit_id:
            return quantity, True

        factor = await self.resolver.resolve(request.unit_id, product.unit_id)
        if factor is None:
            logger.warning(
                f"No conversion from unit {request.unit_id} to unit {product.unit_id}; "
                f"using quantity {quantity} without conversion"
            )
            return quantity, False

        converted = quantize_nonzero(quantity * factor)
        logger.info(
            f"Converted {quantity} (unit {request.unit_id}) x {factor} = {converted} (unit {product.unit_id})"
        )
        return converted, True

    async def _to_request_units(
        self,
        quantity: Decimal,
        request: RequestRecord,
        product: ProductRecord,
    ) -> Decimal:
        """Convert a leftover back for reporting; keeps inventory units when impossible."""
        if request.unit_id == product.unit_id:
            return quantity

        factor = await self.resolver.resolve(product.unit_id, request.unit_id)
        if factor is None:
            logger.warning(
                f"No conversion back from unit {product.unit_id} to unit {request.unit_id}; "
                f"reporting {quantity} in inventory units"
            )
            return quantity
        return quantize_nonzero(quantity * factor)
