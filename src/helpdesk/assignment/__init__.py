"""
Assignment Module
=================

Bounded Context for routing new tickets to the right person.

Responsibilities:
- Analyze tickets with an LLM (required skills, notes, estimate, priority)
- Fall back to a default analysis when the model is unavailable
- Match moderators by skill and pick the least loaded one
- Fall back to the most recently active admin
- Notify the assignee
"""

__version__ = "1.0.0"
