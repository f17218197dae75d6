"""Exceptions for report assembly."""


class ReportError(Exception):
    """Base exception for report assembly errors."""


class EnhancementAbortedError(ReportError):
    """A title enhancement failed and the run is configured to abort."""

    def __init__(self, identifier: str, error: str | None) -> None:
        self.identifier = identifier
        self.error = error
        super().__init__(f"Title enhancement failed for {identifier}: {error}")
