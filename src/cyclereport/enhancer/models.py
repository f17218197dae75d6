"""Data models for title enhancement."""

from dataclasses import dataclass


@dataclass
class TitleResult:
    """Result of a title enhancement.

    Attributes:
        success: False when the language model call itself failed.
        title: Title to display. Always set; the original title unless the
            model returned usable text.
        enhanced: Whether ``title`` came from the model.
        error: Error message if the call failed.
    """

    success: bool
    title: str
    enhanced: bool = False
    error: str | None = None
