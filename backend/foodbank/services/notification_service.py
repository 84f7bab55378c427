"""Notification client for request status changes."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from foodbank.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """In-app notification for one user."""
    title: str
    body: str
    category: str
    severity: str  # "success", "warning", "info"
    recipient_id: int
    action_url: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationResult:
    """Result of a notification attempt."""
    success: bool
    recipient_id: int
    title: str
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


class NotificationClient:
    """Posts notifications to a webhook. Never raises: failures come back in the result."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._http_client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def send(self, notification: Notification) -> NotificationResult:
        if not self.webhook_url:
            logger.info(
                f"[NOTIFICATION] No webhook configured, logging only. "
                f"To user {notification.recipient_id}: {notification.title} - {notification.body}"
            )
            return NotificationResult(
                success=True,
                recipient_id=notification.recipient_id,
                title=notification.title,
                sent_at=datetime.now(timezone.utc),
            )

        client = await self._get_client()
        try:
            response = await client.post(self.webhook_url, json=asdict(notification))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Notification to user {notification.recipient_id} failed: {e}")
            return NotificationResult(
                success=False,
                recipient_id=notification.recipient_id,
                title=notification.title,
                error=str(e),
            )

        logger.info(f"Notification sent to user {notification.recipient_id}: {notification.title}")
        return NotificationResult(
            success=True,
            recipient_id=notification.recipient_id,
            title=notification.title,
            sent_at=datetime.now(timezone.utc),
        )

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


# Singleton instance
_notification_client: Optional[NotificationClient] = None


def get_notification_client() -> NotificationClient:
    """Get or create the notification client singleton."""
    global _notification_client
    if _notification_client is None:
        _notification_client = NotificationClient(
            webhook_url=settings.notification_webhook_url,
            timeout=settings.notification_timeout_seconds,
        )
    return _notification_client
