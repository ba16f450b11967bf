"""
Notifications Application Layer
===============================

Contains:
- INotificationSender: delivery interface
- TicketNotificationService: assignment, escalation, SLA warning and
  resolution notifications
"""

from helpdesk.notifications.application.services import (
    INotificationSender,
    TicketNotificationService,
)

__all__ = [
    "INotificationSender",
    "TicketNotificationService",
]
