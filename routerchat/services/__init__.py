"""
Business logic services.

Orchestrates chat turns through providers, persistence, history, and
feedback.
"""

__all__: list[str] = []
