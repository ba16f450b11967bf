"""
Shared Kernel Module
====================

Generic infrastructure used across the bounded contexts (tickets,
assignment, sla, notifications).

DO NOT add assignment or SLA business logic to the shared kernel.
"""

__version__ = "1.0.0"
