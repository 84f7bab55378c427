"""Movement ledger schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MovementDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: Decimal
    transaction_kind: str
    user_role: Optional[str] = None
    note: Optional[str] = None
    unit_id: Optional[int] = None


class MovementHeaderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    moved_at: datetime
    actor_id: int
    recipient_id: Optional[int] = None
    status: str
    note: Optional[str] = None
    details: List[MovementDetailOut] = []
