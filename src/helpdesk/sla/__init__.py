"""
SLA Module
==========

Bounded Context for service level agreement tracking.

Responsibilities:
- Map ticket priority to a response budget and derive the deadline
- Detect near-breach and breached tickets
- Warn assignees and admins before the deadline
- Flag breached tickets once
- Schedule the daily sweep
"""

__version__ = "1.0.0"
