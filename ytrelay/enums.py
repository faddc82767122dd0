"""Defines Enum classes used in the package."""

__all__ = ["ErrorType", "HubMode", "SignatureStatus"]

from enum import Enum


class HubMode(str, Enum):
    """Enum for the ``hub.mode`` values the subscriber sends to the hub."""

    SUBSCRIBE = "subscribe"
    """Start or renew a subscription"""

    UNSUBSCRIBE = "unsubscribe"
    """Cancel a subscription"""


class ErrorType(str, Enum):
    """Enum for the request that failed in an error event."""

    SUBSCRIBE = "subscribe"
    """A subscribe request was rejected or could not be sent"""

    UNSUBSCRIBE = "unsubscribe"
    """An unsubscribe request was rejected or could not be sent"""


class SignatureStatus(Enum):
    """Enum for the outcome of checking an ``X-Hub-Signature`` header."""

    VALID = 0
    """The digest matches the body"""

    MISMATCH = 1
    """The digest is well-formed but does not match the body"""

    UNSUPPORTED = 2
    """The header names a hash algorithm that is not available"""

    MISSING = 3
    """The header is absent"""
