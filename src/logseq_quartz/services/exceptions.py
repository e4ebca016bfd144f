"""Custom exceptions for logseq-quartz."""

from typing import Optional


class QuerySyntaxError(Exception):
    """Raised when a {{query ...}} expression cannot be parsed.

    The transform pipeline catches this and keeps the raw query as inert
    text, so it never aborts a page.

    Attributes:
        query: The raw query text
        position: Character offset where parsing failed (None if unknown)
        message: Human-readable error message
    """

    def __init__(self, query: str, message: str, position: Optional[int] = None):
        """Initialize QuerySyntaxError.

        Args:
            query: The raw query text
            message: Human-readable error message
            position: Character offset where parsing failed
        """
        self.query = query
        self.message = message
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"{message}{where}: {query}")


class ConversionError(Exception):
    """Raised when a single page cannot be converted or written.

    The converter catches this per page, logs it and keeps going.

    Attributes:
        path: Source path of the page
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str = "Failed to convert page"):
        """Initialize ConversionError.

        Args:
            path: Source path of the page
            message: Human-readable error message
        """
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")
