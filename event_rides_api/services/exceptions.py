"""Exceptions raised by the event ride service."""


class ConflictError(Exception):
    """Raised when a write would break a ride rule (double booking, full car)."""

    pass


class NotFoundError(Exception):
    """Raised when an event ride does not exist."""

    pass
