"""Request action service - approve, reject and revert beneficiary requests.

Approving a pending request runs the allocation engine, records the delivery
in the movement ledger and notifies the beneficiary. Every operation returns
a ``ServiceResult`` envelope; nothing raises past this boundary.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from foodbank.core.config import settings
from foodbank.core.responses import fail, ok, unexpected
from foodbank.db.row_store import ConcurrencyConflict, RowStore, RowStoreError, SqlAlchemyRowStore
from foodbank.models.donation_request import DonationRequest, RequestStatus
from foodbank.models.unit import Unit
from foodbank.schemas.common import ServiceResult
from foodbank.schemas.request import ActionResponse, Decision
from foodbank.services.allocation import (
    AllocationOrchestrator,
    AllocationOutcome,
    AllocationResult,
    LedgerRecorder,
    LedgerStatus,
    RequestRecord,
)
from foodbank.services.notification_service import (
    Notification,
    NotificationClient,
    get_notification_client,
)

logger = logging.getLogger(__name__)

DEFAULT_UNIT_SYMBOL = "units"
CONVERSION_MISSING_SUFFIX = " Some quantities were applied without unit conversion."


def format_quantity(value: Decimal) -> str:
    """Render a quantity without trailing zeros (5.000 -> 5, 2.500 -> 2.5)."""
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")


def build_result_message(request: RequestRecord, result: AllocationResult, symbol: str) -> str:
    if result.outcome is AllocationOutcome.ERROR:
        message = "Request approved, but an error occurred while updating inventory."
    elif result.outcome is AllocationOutcome.NO_STOCK:
        message = f'Request approved, but there is no inventory available for "{request.food_type}".'
    elif result.outcome is AllocationOutcome.PARTIAL:
        message = (
            f"Request partially approved. Delivered {format_quantity(result.delivered_in_request_units)} "
            f"of {format_quantity(request.quantity)} {symbol}."
        )
    else:
        message = "Request approved and deducted from inventory successfully."

    if result.conversion_missing:
        message += CONVERSION_MISSING_SUFFIX
    return message


def _clean_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    comment = comment.strip()
    return comment or None


class RequestActionService:
    """Status transitions of donation requests."""

    def __init__(
        self,
        store: RowStore,
        notifier: Optional[NotificationClient] = None,
        orchestrator: Optional[AllocationOrchestrator] = None,
        ledger: Optional[LedgerRecorder] = None,
    ):
        self.store = store
        self.notifier = notifier or get_notification_client()
        self.orchestrator = orchestrator or AllocationOrchestrator(store)
        self.ledger = ledger or LedgerRecorder(store)

    async def approve_or_reject(
        self,
        request_id: int,
        decision: Decision,
        actor_id: int,
        comment: Optional[str] = None,
    ) -> ServiceResult:
        """Approve or reject a request.

        Inventory is allocated only on the pending -> approved transition;
        approving a request that is already approved or rejected just updates
        its status. The status write is conditional on the status that was
        read, so when two decisions race only one of them allocates.
        Business outcomes (no stock, partial delivery, missing unit
        conversion) come back as ``success=True`` with ``warning=True``.
        """
        try:
            try:
                row = await self.store.read_by_id(DonationRequest, request_id)
            except RowStoreError as e:
                return fail("Could not load the request", e.to_details())
            if row is None:
                return fail("Request not found", {"id": request_id})

            request = RequestRecord.from_row(row)
            new_status = decision.value
            admin_comment = _clean_comment(comment)
            logger.info(f"Updating request {request.id} status to {new_status}")

            try:
                await self.store.update_by_id(
                    DonationRequest,
                    request.id,
                    {
                        "status": new_status,
                        "responded_at": datetime.now(timezone.utc),
                        "admin_comment": admin_comment,
                    },
                    expected={"status": request.status},
                )
            except ConcurrencyConflict as e:
                logger.warning(
                    f"Request {request.id} changed status while being updated; expected {request.status}"
                )
                return fail("The request was modified by another action, reload it and try again", e.to_details())
            except RowStoreError as e:
                logger.error(f"Error updating status of request {request.id}: {e}")
                return fail("Could not update the request status", e.to_details())

            if decision is Decision.APPROVED and request.status == RequestStatus.PENDING.value:
                response = await self._approve_with_inventory(request, actor_id)
            else:
                await self._notify(request, new_status, admin_comment=admin_comment)
                response = ActionResponse(
                    success=True,
                    message=f"Request {new_status} successfully",
                    warning=False,
                )
            return ok(response)

        except Exception as e:
            logger.error(f"Unexpected error updating request {request_id}: {e}", exc_info=True)
            return unexpected("Unexpected error while updating the request", e)

    async def revert_to_pending(self, request_id: int) -> ServiceResult:
        """Send a request back to pending. Inventory already delivered is not restored."""
        try:
            try:
                row = await self.store.read_by_id(DonationRequest, request_id)
                if row is None:
                    return fail("Request not found", {"id": request_id})
                await self.store.update_by_id(
                    DonationRequest,
                    request_id,
                    {"status": RequestStatus.PENDING.value, "responded_at": None},
                )
            except RowStoreError as e:
                logger.error(f"Error reverting request {request_id}: {e}")
                return fail("Could not revert the request", e.to_details())

            logger.info(f"Request {request_id} reverted to pending")
            return ok(ActionResponse(success=True, message="Request reverted to pending successfully"))

        except Exception as e:
            logger.error(f"Unexpected error reverting request {request_id}: {e}", exc_info=True)
            return unexpected("Unexpected error while reverting the request", e)

    async def _approve_with_inventory(
        self,
        request: RequestRecord,
        actor_id: int,
    ) -> ActionResponse:
        result = await self.orchestrator.allocate(request)
        symbol = await self._unit_symbol(request.unit_id)

        ledger = await self.ledger.record(
            actor_id=actor_id,
            recipient_id=request.user_id,
            delivered=result.delivered,
            note=f"Request approved - {request.food_type} ({format_quantity(request.quantity)} {symbol})",
            detail_note=f"Delivery for approved request - {request.food_type}",
        )
        ledger_incomplete = bool(result.delivered) and not ledger.complete
        if ledger_incomplete:
            logger.error(
                f"Movement ledger for request {request.id} is incomplete "
                f"(status={ledger.status.value}, failed details={ledger.details_failed})"
            )
        elif ledger.status is LedgerStatus.RECORDED:
            logger.info(f"Request {request.id} recorded as movement {ledger.header_id}")

        message = build_result_message(request, result, symbol)
        await self._notify(request, RequestStatus.APPROVED.value, message=message, symbol=symbol)

        return ActionResponse(
            success=True,
            message=message,
            warning=result.warning or ledger_incomplete,
        )

    async def _unit_symbol(self, unit_id: Optional[int]) -> str:
        if unit_id is None:
            return DEFAULT_UNIT_SYMBOL
        try:
            row = await self.store.read_by_id(Unit, unit_id)
        except RowStoreError as e:
            logger.warning(f"Could not load unit {unit_id}: {e}")
            return DEFAULT_UNIT_SYMBOL
        if row is None or not row.get("symbol"):
            return DEFAULT_UNIT_SYMBOL
        return row["symbol"]

    async def _notify(
        self,
        request: RequestRecord,
        new_status: str,
        message: Optional[str] = None,
        admin_comment: Optional[str] = None,
        symbol: Optional[str] = None,
    ) -> None:
        if new_status == RequestStatus.APPROVED.value:
            title = "Your request has been approved"
            if not message:
                symbol = symbol or await self._unit_symbol(request.unit_id)
                message = (
                    f"Your request for {format_quantity(request.quantity)} {symbol} "
                    f"of {request.food_type} has been approved."
                )
            severity = "success"
        else:
            title = "Your request has been rejected"
            if admin_comment:
                message = f"Your request was rejected. Administrator comment: {admin_comment}"
            else:
                message = f"Your request for {request.food_type} was rejected."
            severity = "warning"

        result = await self.notifier.send(
            Notification(
                title=title,
                body=message,
                category="request",
                severity=severity,
                recipient_id=request.user_id,
                action_url=settings.request_action_url,
                metadata={"request_id": request.id, "new_status": new_status},
            )
        )
        if not result.success:
            logger.warning(f"Beneficiary {request.user_id} was not notified about request {request.id}")


def get_request_action_service(
    db: Session,
    notifier: Optional[NotificationClient] = None,
) -> RequestActionService:
    """Factory function to get the request action service."""
    return RequestActionService(SqlAlchemyRowStore(db), notifier=notifier)
