"""
Interfaces Layer
================

Event names, handlers and the in-process dispatcher through which the
event layer triggers the assignment workflow, the SLA sweep and the
notification workflows.
"""
