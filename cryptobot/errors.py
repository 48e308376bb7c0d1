"""Error taxonomy shared by the indicator, broker, ledger and engine layers.

Everything the trading cycle can recover from derives from
``CryptoBotError`` so the engine can catch it at the cycle boundary.
"""


class CryptoBotError(Exception):
    """Base class for recoverable bot errors."""


class InsufficientDataError(CryptoBotError, ValueError):
    """The price series is shorter than an indicator's lookback requires."""


class TransportError(CryptoBotError):
    """The market-data endpoint could not be reached or returned garbage."""


class ExecutionError(CryptoBotError):
    """The exchange rejected (or never acknowledged) a market order."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class PersistenceError(CryptoBotError):
    """A read or write against the durable store failed."""
