"""Custom exceptions for the Linear tracking client."""


class TrackerError(Exception):
    """Base exception for tracking service errors."""


class NotFoundError(TrackerError):
    """A required record does not exist in the tracking service."""


class TeamNotFoundError(NotFoundError):
    """Team with given ID does not exist."""


class CycleNotFoundError(NotFoundError):
    """No cycle with progress (the current cycle) could be found."""
