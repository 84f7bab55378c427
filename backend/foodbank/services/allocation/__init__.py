"""Inventory allocation engine."""

from foodbank.services.allocation.conversion import UnitConversionResolver
from foodbank.services.allocation.depletion import BatchDepletionAllocator
from foodbank.services.allocation.ledger import LedgerRecorder, LedgerResult, LedgerStatus
from foodbank.services.allocation.locator import StockLocator
from foodbank.services.allocation.matcher import ProductMatcher
from foodbank.services.allocation.orchestrator import AllocationOrchestrator
from foodbank.services.allocation.types import (
    AllocationOutcome,
    AllocationResult,
    BatchRecord,
    DeliveredDetail,
    DepletionResult,
    ProductRecord,
    RequestRecord,
    UnitRecord,
)

__all__ = [
    "AllocationOrchestrator",
    "AllocationOutcome",
    "AllocationResult",
    "BatchDepletionAllocator",
    "BatchRecord",
    "DeliveredDetail",
    "DepletionResult",
    "LedgerRecorder",
    "LedgerResult",
    "LedgerStatus",
    "ProductMatcher",
    "ProductRecord",
    "RequestRecord",
    "StockLocator",
    "UnitConversionResolver",
    "UnitRecord",
]
