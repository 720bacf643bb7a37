"""
Request-level error taxonomy.

Component boundaries (extractor, locator, AI client) return result objects
instead of raising; these exceptions cover what the match service itself
can refuse.
"""

from typing import Optional


class MatchEngineError(Exception):
    """Base class for matching engine errors."""

    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(MatchEngineError):
    """Malformed or missing request fields."""

    status_code = 400


class AuthorizationError(MatchEngineError):
    """The requester may not act on this subject or record."""

    status_code = 403


class NotFoundError(MatchEngineError):
    """A referenced record does not exist."""

    status_code = 404


class PersistenceError(MatchEngineError):
    """The record store rejected a read or write. Logged, never surfaced."""
