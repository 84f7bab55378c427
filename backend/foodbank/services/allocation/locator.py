"""Stock locator: batches of a product, stalest first."""

import logging
from typing import List

from foodbank.db.row_store import RowStore
from foodbank.models.inventory import InventoryBatch
from foodbank.services.allocation.types import BatchRecord

logger = logging.getLogger(__name__)


class StockLocator:
    """Finds inventory batches with stock for a product.

    Ordering is by last update, oldest first (receipt time is not tracked
    separately), with the batch id as a tiebreak so the order is total.
    """

    def __init__(self, store: RowStore):
        self.store = store

    async def find_batches(self, product_id: int) -> List[BatchRecord]:
        rows = await self.store.read_by_filter(
            InventoryBatch,
            InventoryBatch.product_id == product_id,
            InventoryBatch.quantity_available > 0,
            order_by=(InventoryBatch.updated_at.asc(), InventoryBatch.id.asc()),
        )
        batches = [BatchRecord.from_row(row) for row in rows]
        logger.debug(f"Located {len(batches)} batch(es) with stock for product {product_id}")
        return batches
