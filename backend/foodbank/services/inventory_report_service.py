"""Read-only inventory and movement reports."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from foodbank.core.responses import fail, list_response, ok
from foodbank.models.depot import Depot
from foodbank.models.inventory import InventoryBatch
from foodbank.models.movement import MovementHeader
from foodbank.models.product import DonatedProduct
from foodbank.schemas.common import ServiceResult
from foodbank.schemas.inventory import DepotOut, InventoryItemOut, InventoryProductOut
from foodbank.schemas.movement import MovementHeaderOut

logger = logging.getLogger(__name__)

NO_DEPOT = "No depot"
UNNAMED_PRODUCT = "Unnamed product"


class InventoryReportService:

    def __init__(self, db: Session):
        self.db = db

    def _item(self, batch: InventoryBatch) -> InventoryItemOut:
        depot = batch.depot
        product = batch.product
        unit = product.unit if product is not None else None
        return InventoryItemOut(
            id=batch.id,
            depot_id=batch.depot_id,
            product_id=batch.product_id,
            quantity_available=batch.quantity_available,
            updated_at=batch.updated_at,
            depot=DepotOut(
                id=batch.depot_id,
                name=(depot.name if depot is not None else None) or NO_DEPOT,
                description=depot.description if depot is not None else None,
            ),
            product=InventoryProductOut(
                id=batch.product_id,
                name=(product.name if product is not None else None) or UNNAMED_PRODUCT,
                description=product.description if product is not None else None,
                unit_id=product.unit_id if product is not None else None,
                unit_name=unit.name if unit is not None else None,
                unit_symbol=unit.symbol if unit is not None else None,
                expires_on=product.expires_on if product is not None else None,
                donated_on=product.donated_on if product is not None else None,
            ),
        )

    async def list_inventory(self) -> ServiceResult:
        """Every batch with its depot, product and unit, most recently updated first."""
        stmt = (
            select(InventoryBatch)
            .options(
                joinedload(InventoryBatch.depot),
                joinedload(InventoryBatch.product).joinedload(DonatedProduct.unit),
            )
            .order_by(InventoryBatch.updated_at.desc(), InventoryBatch.id.desc())
        )
        try:
            batches = self.db.execute(stmt).unique().scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading inventory: {e}")
            return fail("Could not load inventory", {"type": type(e).__name__})

        items = [self._item(b).model_dump(mode="json") for b in batches]
        return ok(list_response(items))

    async def list_depots(self) -> ServiceResult:
        try:
            depots = self.db.execute(select(Depot).order_by(Depot.name.asc())).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading depots: {e}")
            return fail("Could not load depots", {"type": type(e).__name__})

        items = [DepotOut.model_validate(d).model_dump(mode="json") for d in depots]
        return ok(list_response(items))

    async def list_movements(self, limit: int = 100) -> ServiceResult:
        """Ledger headers with their details, newest first."""
        stmt = (
            select(MovementHeader)
            .options(selectinload(MovementHeader.details))
            .order_by(MovementHeader.moved_at.desc(), MovementHeader.id.desc())
            .limit(limit)
        )
        try:
            headers = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading movements: {e}")
            return fail("Could not load movements", {"type": type(e).__name__})

        items = [MovementHeaderOut.model_validate(h).model_dump(mode="json") for h in headers]
        return ok(list_response(items))
