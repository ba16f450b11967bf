"""
Shared Infrastructure
=====================

Database engine and LLM client used across bounded contexts.
"""
