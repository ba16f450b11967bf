"""
Helpdesk Assignment Service
===========================

Background processing for helpdesk tickets: AI analysis, skill-based
assignment with workload balancing, SLA tracking and notifications.
"""

__version__ = "1.0.0"
