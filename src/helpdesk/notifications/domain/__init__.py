"""
Notifications Domain Layer
==========================

Tagged notification payloads and delivery receipts.
"""

from helpdesk.notifications.domain.entities import (
    AssignmentNotification,
    EscalationNotification,
    Notification,
    NotificationReceipt,
    NotificationRecipient,
    ResolutionNotification,
    SLAWarningNotification,
    TicketSummary,
)

__all__ = [
    "AssignmentNotification",
    "EscalationNotification",
    "Notification",
    "NotificationReceipt",
    "NotificationRecipient",
    "ResolutionNotification",
    "SLAWarningNotification",
    "TicketSummary",
]
