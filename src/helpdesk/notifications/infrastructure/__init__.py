"""
Notifications Infrastructure Layer
==================================

Delivery adapters for ticket notifications.
"""

from helpdesk.notifications.infrastructure.external import (
    LoggingNotificationSender,
    WebhookNotificationSender,
)

__all__ = [
    "LoggingNotificationSender",
    "WebhookNotificationSender",
]
