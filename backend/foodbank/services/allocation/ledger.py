"""Ledger recorder: writes the movement trail of a delivery.

One header per approval event, then one egress detail per product delivered.
Nothing is written when nothing was delivered, so a header never exists
without details. A failed header aborts the whole record; a failed detail is
logged and left out, and the header and the other details stay.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence

from foodbank.db.row_store import RowStore, RowStoreError
from foodbank.models.movement import MovementDetail, MovementHeader, MovementStatus, TransactionKind
from foodbank.services.allocation.types import DeliveredDetail

logger = logging.getLogger(__name__)

RECIPIENT_ROLE = "beneficiary"


class LedgerStatus(str, Enum):
    RECORDED = "recorded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class LedgerResult:
    status: LedgerStatus
    header_id: Optional[int] = None
    details_written: int = 0
    details_failed: int = 0

    @property
    def complete(self) -> bool:
        return self.status is LedgerStatus.RECORDED and self.details_failed == 0


class LedgerRecorder:

    def __init__(self, store: RowStore):
        self.store = store

    async def record(
        self,
        actor_id: int,
        recipient_id: Optional[int],
        delivered: Sequence[DeliveredDetail],
        note: Optional[str] = None,
        detail_note: Optional[str] = None,
    ) -> LedgerResult:
        details = [d for d in delivered if d.quantity > 0]
        if not details:
            logger.warning("No movement recorded: nothing was deducted from inventory")
            return LedgerResult(status=LedgerStatus.SKIPPED)

        try:
            header = await self.store.insert(
                MovementHeader,
                {
                    "moved_at": datetime.now(timezone.utc),
                    "actor_id": actor_id,
                    "recipient_id": recipient_id,
                    "status": MovementStatus.COMPLETED.value,
                    "note": note,
                },
            )
        except RowStoreError as e:
            logger.error(f"Error creating movement header: {e}")
            return LedgerResult(status=LedgerStatus.FAILED)

        written = 0
        failed = 0
        for detail in details:
            try:
                await self.store.insert(
                    MovementDetail,
                    {
                        "header_id": header["id"],
                        "product_id": detail.product.id,
                        "quantity": detail.quantity,
                        "transaction_kind": TransactionKind.EGRESS.value,
                        "user_role": RECIPIENT_ROLE,
                        "note": detail_note,
                        "unit_id": detail.unit_id,
                    },
                )
                written += 1
            except RowStoreError as e:
                failed += 1
                logger.error(
                    f"Error creating movement detail for product {detail.product.id} "
                    f"under header {header['id']}: {e}"
                )

        logger.info(f"Recorded movement {header['id']} with {written} detail(s), {failed} failed")
        return LedgerResult(
            status=LedgerStatus.RECORDED,
            header_id=header["id"],
            details_written=written,
            details_failed=failed,
        )
