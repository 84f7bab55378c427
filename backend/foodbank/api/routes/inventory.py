"""Inventory report routes."""

from fastapi import APIRouter

from foodbank.core.rbac import RequireAdmin
from foodbank.db.session import DbSession
from foodbank.schemas.common import ServiceResult
from foodbank.services.inventory_report_service import InventoryReportService

router = APIRouter()


@router.get("", response_model=ServiceResult)
async def list_inventory(db: DbSession, current_user: RequireAdmin):
    """Every batch with its depot and product, most recently updated first."""
    return await InventoryReportService(db).list_inventory()


@router.get("/depots", response_model=ServiceResult)
async def list_depots(db: DbSession, current_user: RequireAdmin):
    return await InventoryReportService(db).list_depots()
