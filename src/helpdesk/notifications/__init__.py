"""
Notifications Module
====================

Ticket notifications: assignment, escalation, SLA warning and resolution.

Architecture:
- domain/: Tagged payloads and receipts
- application/: Sender interface and notification workflows
- infrastructure/: Webhook and log-only senders
"""
