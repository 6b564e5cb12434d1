from typing import Optional


class CrawlerError(Exception):
    """Base class for crawler failures"""


class ExhaustedRetriesError(CrawlerError):
    """An operation kept failing after every retry attempt.

    The last underlying failure is kept untouched in ``last_error`` (and as
    ``__cause__`` when raised with ``from``).
    """

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        super().__init__(f"{description} failed after {attempts} attempts: {last_error}")
        self.description = description
        self.attempts = attempts
        self.last_error = last_error


class NavigationError(ExhaustedRetriesError):
    """The listing view never reached a ready state."""


class RowExtractionError(CrawlerError):
    def __init__(self, index: int, message: str):
        super().__init__(f"Row {index}: {message}")
        self.index = index


class NodeExtractionError(CrawlerError):
    """A tree node could not be read; ``depth`` is set when its indentation was."""

    def __init__(self, index: int, message: str, depth: Optional[int] = None):
        super().__init__(f"Node {index}: {message}")
        self.index = index
        self.depth = depth


class DocumentError(CrawlerError):
    pass


class DocumentTimeoutError(DocumentError):
    def __init__(self, selector: str, state: str, timeout: Optional[float] = None):
        super().__init__(f"Timed out waiting for '{selector}' to be {state}")
        self.selector = selector
        self.state = state
        self.timeout = timeout


class ReadOnlyDocumentError(DocumentError):
    """Raised when a snapshot without a click handler is asked to click."""
