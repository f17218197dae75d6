"""cycle-report - Weekly team status reports from Linear cycles."""

__version__ = "0.1.0"
