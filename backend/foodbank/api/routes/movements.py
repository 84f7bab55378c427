"""Movement ledger routes."""

from fastapi import APIRouter, Query

from foodbank.core.rbac import RequireAdmin
from foodbank.db.session import DbSession
from foodbank.schemas.common import ServiceResult
from foodbank.services.inventory_report_service import InventoryReportService

router = APIRouter()


@router.get("", response_model=ServiceResult)
async def list_movements(
    db: DbSession,
    current_user: RequireAdmin,
    limit: int = Query(100, ge=1, le=1000),
):
    return await InventoryReportService(db).list_movements(limit=limit)
