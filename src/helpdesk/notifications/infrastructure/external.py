"""
Notification Delivery Adapters
==============================

Senders implementing ``INotificationSender``:
- Webhook delivery (JSON POST over httpx)
- Log-only delivery for development
"""

from typing import Optional

import httpx

from helpdesk.core import ConfigurationException, NotificationException
from helpdesk.notifications.application import INotificationSender
from helpdesk.notifications.domain import Notification, NotificationReceipt
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class WebhookNotificationSender(INotificationSender):
    """
    Posts each notification as JSON to a webhook endpoint.

    A single attempt per notification; non-2xx responses and transport
    errors raise ``NotificationException``.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout_seconds: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        if not webhook_url:
            raise ConfigurationException("Notification webhook URL not configured")
        self._webhook_url = webhook_url
        self._timeout = timeout_seconds
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def send(self, notification: Notification) -> NotificationReceipt:
        client = await self._get_client()
        try:
            response = await client.post(
                self._webhook_url,
                json=notification.model_dump(mode="json")
            )
        except httpx.HTTPError as e:
            raise NotificationException(
                f"Webhook delivery failed for ticket {notification.ticket.id}: {e}"
            )

        if not response.is_success:
            logger.warning(
                "Notification webhook returned non-2xx",
                extra={
                    "status_code": response.status_code,
                    "ticket_id": notification.ticket.id
                }
            )
            raise NotificationException(
                f"Webhook returned {response.status_code} for ticket {notification.ticket.id}"
            )

        return NotificationReceipt(
            notification_type=notification.type,
            ticket_id=notification.ticket.id,
            recipient_id=notification.recipient.id,
            detail=f"HTTP {response.status_code}"
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class LoggingNotificationSender(INotificationSender):
    """Writes notifications to the log instead of delivering them."""

    async def send(self, notification: Notification) -> NotificationReceipt:
        logger.info(
            "Notification (log only)",
            extra={
                "notification_type": notification.type,
                "ticket_id": notification.ticket.id,
                "recipient_email": notification.recipient.email
            }
        )
        return NotificationReceipt(
            notification_type=notification.type,
            ticket_id=notification.ticket.id,
            recipient_id=notification.recipient.id,
            detail="logged"
        )
