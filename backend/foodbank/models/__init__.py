"""SQLAlchemy models."""

from foodbank.models.user import User
from foodbank.models.unit import MagnitudeType, Unit, UnitConversion
from foodbank.models.product import DonatedProduct
from foodbank.models.depot import Depot
from foodbank.models.inventory import InventoryBatch
from foodbank.models.donation_request import DonationRequest, RequestStatus
from foodbank.models.movement import MovementDetail, MovementHeader, MovementStatus, TransactionKind

__all__ = [
    "User",
    "MagnitudeType",
    "Unit",
    "UnitConversion",
    "DonatedProduct",
    "Depot",
    "InventoryBatch",
    "DonationRequest",
    "RequestStatus",
    "MovementHeader",
    "MovementDetail",
    "MovementStatus",
    "TransactionKind",
]
