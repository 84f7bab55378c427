"""Inventory report schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DepotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None


class InventoryProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    unit_id: Optional[int] = None
    unit_name: Optional[str] = None
    unit_symbol: Optional[str] = None
    expires_on: Optional[date] = None
    donated_on: Optional[date] = None


class InventoryItemOut(BaseModel):
    id: int
    depot_id: int
    product_id: int
    quantity_available: Decimal
    updated_at: Optional[datetime] = None
    depot: DepotOut
    product: InventoryProductOut
