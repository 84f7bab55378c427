"""Request decision routes (admin only).

Failures that the service reports in its envelope are returned as HTTP 200
with ``success=false``; callers must check ``success``.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from foodbank.core.config import settings
from foodbank.core.rate_limit import limiter
from foodbank.core.rbac import RequireAdmin
from foodbank.db.session import DbSession
from foodbank.schemas.common import ServiceResult
from foodbank.schemas.request import ActionResponse, DecisionIn
from foodbank.services.notification_service import NotificationClient, get_notification_client
from foodbank.services.request_action_service import get_request_action_service

router = APIRouter()

Notifier = Annotated[NotificationClient, Depends(get_notification_client)]


@router.post("/{request_id}/decision", response_model=ServiceResult[ActionResponse])
@limiter.limit(settings.decision_rate_limit)
async def decide_request(
    request: Request,
    request_id: int,
    payload: DecisionIn,
    db: DbSession,
    current_user: RequireAdmin,
    notifier: Notifier,
):
    """Approve or reject a beneficiary request. Approval deducts inventory."""
    service = get_request_action_service(db, notifier=notifier)
    return await service.approve_or_reject(
        request_id,
        payload.decision,
        actor_id=current_user.user_id,
        comment=payload.comment,
    )


@router.post("/{request_id}/revert", response_model=ServiceResult[ActionResponse])
@limiter.limit(settings.decision_rate_limit)
async def revert_request(
    request: Request,
    request_id: int,
    db: DbSession,
    current_user: RequireAdmin,
):
    """Put a request back to pending. Delivered stock is not returned."""
    service = get_request_action_service(db)
    return await service.revert_to_pending(request_id)
