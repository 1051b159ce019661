"""
Exception types raised by the Make Your Choice core.

Hosts-file write failures are deliberately not wrapped: they surface as the
built-in OSError subclasses (PermissionError in practice) so the UI can tell
the operator to run elevated.
"""

from __future__ import annotations


class MyChoiceError(Exception):
    """Base class for errors reported to the operator."""


class ValidationError(MyChoiceError, ValueError):
    """The requested selection cannot be applied. Nothing was written."""


class ResolutionError(MyChoiceError):
    """A hostname could not be resolved to an IPv4 address."""

    def __init__(self, hostname: str, reason: str = ""):
        self.hostname = hostname
        message = f"Failed to resolve hostname: {hostname}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class FeedError(MyChoiceError):
    """The IP range feed could not be fetched or decoded."""
