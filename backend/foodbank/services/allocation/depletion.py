"""Batch depletion allocator.

Deducts a required quantity from an ordered list of batches:

    for each batch, in order, while something is still required:
        take = min(remaining, batch.available)
        persist batch.available - take

Writes are best-effort: a batch whose write fails is logged and skipped, and
the loop moves on to the next batch. Each write is conditional on the batch
version that was read; when another approval got there first, the batch is
re-read and ``take`` is recomputed against the fresh quantity, up to
``conflict_retries`` times.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from foodbank.core.config import settings
from foodbank.db.row_store import ConcurrencyConflict, RowStore, RowStoreError
from foodbank.models.inventory import InventoryBatch
from foodbank.services.allocation.types import ZERO, BatchDraw, BatchRecord, DepletionResult

logger = logging.getLogger(__name__)


class BatchDepletionAllocator:

    def __init__(self, store: RowStore, conflict_retries: Optional[int] = None):
        self.store = store
        self.conflict_retries = (
            settings.allocation_conflict_retries if conflict_retries is None else conflict_retries
        )

    async def allocate(self, required: Decimal, batches: Sequence[BatchRecord]) -> DepletionResult:
        """Deplete ``batches`` in the given order until ``required`` is met or they run out."""
        result = DepletionResult.start(required)

        for batch in batches:
            if result.remaining <= 0:
                break

            draw = await self._draw(batch, result.remaining)
            result = result.with_failure() if draw is None else result.with_draw(draw)

        if result.remaining > 0:
            logger.info(
                f"Batches exhausted with {result.remaining} still required "
                f"({result.batches_touched}/{result.batches_attempted} batches written)"
            )
        return result

    async def _draw(self, batch: BatchRecord, wanted: Decimal) -> Optional[BatchDraw]:
        """Remove up to ``wanted`` from one batch. None when the write could not be persisted."""
        current = batch

        for attempt in range(self.conflict_retries + 1):
            take = min(wanted, current.quantity_available)
            if take <= 0:
                logger.info(f"Batch {current.id} has no stock left; skipping")
                return BatchDraw(current.id, current.depot_id, ZERO, current.quantity_available)

            new_qty = current.quantity_available - take
            try:
                await self.store.update_by_id(
                    InventoryBatch,
                    current.id,
                    {
                        "quantity_available": new_qty,
                        "version": current.version + 1,
                        "updated_at": datetime.now(timezone.utc),
                    },
                    expected={"version": current.version},
                )
            except ConcurrencyConflict:
                logger.warning(
                    f"Batch {current.id} changed concurrently (attempt {attempt + 1}); re-reading"
                )
                try:
                    row = await self.store.read_by_id(InventoryBatch, current.id)
                except RowStoreError as e:
                    logger.error(f"Error re-reading batch {current.id}: {e}")
                    return None
                if row is None:
                    logger.error(f"Batch {current.id} disappeared during depletion")
                    return None
                current = BatchRecord.from_row(row)
                continue
            except RowStoreError as e:
                logger.error(f"Error deducting from batch {current.id}: {e}")
                return None

            logger.info(
                f"Deducted {take} from batch {current.id} (depot {current.depot_id}, "
                f"{new_qty} left in stock)"
            )
            return BatchDraw(current.id, current.depot_id, take, new_qty)

        logger.error(
            f"Giving up on batch {batch.id} after {self.conflict_retries + 1} conflicting writes"
        )
        return None
