"""
Custom exception hierarchy for the query console.

All errors inherit from LadybugError so the runner can catch them
uniformly and render them into the triggering block's result region.
"""

# Label prefixed to transport-level failures shown to the reader
SOURCE_LABEL = "ladybug-rs"


class LadybugError(Exception):
    """Base exception for all query console errors."""

    def __init__(self, message: str, source: str = SOURCE_LABEL):
        self.message = message
        self.source = source
        super().__init__(f"{source}: {message}")


class QueryTransportError(LadybugError):
    """The request never produced a usable HTTP response."""
    pass


class QueryHTTPError(QueryTransportError):
    """The service answered with a non-success status."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}")


class QueryTimeoutError(QueryTransportError):
    """No response settled within the configured timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__("timeout")


class ResponseShapeError(LadybugError):
    """The response body is not JSON or not a result object."""
    pass


class DocumentFormatError(LadybugError):
    """The pandoc filter received something other than a pandoc JSON document."""

    def __init__(self, message: str):
        super().__init__(message, source="pandoc-filter")
