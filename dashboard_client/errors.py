"""
Dashboard error taxonomy.

Two failure kinds reach the user, both through the same dismissible notice:
- TransportError: the request never produced a structured response
- ApplicationError: the response envelope carried success=false

A declined confirmation is a user abort, not an error, and has no exception.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for dashboard client failures."""


class TransportError(DashboardError):
    """HTTP error status, unreachable host, timeout or unparseable body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ApplicationError(DashboardError):
    """Structured response with a false success flag."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "application error")
        self.message = message
