"""Product matcher: free-text food type -> candidate donated products."""

import logging
from typing import List

from foodbank.db.row_store import RowStore
from foodbank.models.product import DonatedProduct
from foodbank.services.allocation.types import ProductRecord

logger = logging.getLogger(__name__)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ProductMatcher:
    """Case-insensitive substring match on the product name, in store order."""

    def __init__(self, store: RowStore):
        self.store = store

    async def match(self, food_type: str) -> List[ProductRecord]:
        label = (food_type or "").strip()
        if not label:
            logger.warning("Empty food type; no products can match")
            return []

        rows = await self.store.read_by_filter(
            DonatedProduct,
            DonatedProduct.name.ilike(f"%{_escape_like(label)}%", escape="\\"),
            order_by=(DonatedProduct.id.asc(),),
        )
        products = [ProductRecord.from_row(row) for row in rows]
        if not products:
            logger.warning(f"No products match '{label}'")
        else:
            logger.info(f"Matched {len(products)} product(s) for '{label}'")
        return products
