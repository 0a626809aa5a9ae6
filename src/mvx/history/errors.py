"""History persistence errors."""


class HistoryError(Exception):
    """Raised when the history file cannot be read or written."""
