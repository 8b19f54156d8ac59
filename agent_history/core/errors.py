"""Error types for the history window.

Store and summarizer failures are never recovered locally. They are wrapped in
these types and propagated so the triggering operation aborts as a whole.
"""


class HistoryError(RuntimeError):
    """Base exception for history window errors."""

    pass


class HistoryStoreError(HistoryError):
    """Raised when the backing store cannot be loaded or written.

    Attributes:
        operation: "load" or "write"
        location: Store location (file path or Redis key)
    """

    def __init__(self, operation: str, location: str, original_error: Exception) -> None:
        self.operation = operation
        self.location = location
        self.original_error = original_error
        super().__init__(f"History store {operation} failed for {location}: {original_error}")


class SummarizationError(HistoryError):
    """Raised when the summarizer call fails.

    Attributes:
        message_count: Number of messages that were being summarized
    """

    def __init__(self, message_count: int, original_error: Exception) -> None:
        self.message_count = message_count
        self.original_error = original_error
        super().__init__(f"Failed to summarize {message_count} messages: {original_error}")
