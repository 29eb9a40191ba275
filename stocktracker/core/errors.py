"""Error types raised by the tracker."""


class StockTrackerError(Exception):
    """Base class for tracker errors."""


class ValidationError(StockTrackerError, ValueError):
    """Malformed holding input. The holdings list is left unchanged."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class QuoteUnavailable(StockTrackerError):
    """Market data could not be fetched.

    Never reaches the engine: adapters turn it into placeholder data.
    """

    def __init__(self, what: str, reason: str | Exception):
        super().__init__(f"No market data for {what}: {reason}")
        self.what = what
        self.reason = reason


class PersistenceFailure(StockTrackerError):
    """Holdings could not be loaded from or saved to storage."""
