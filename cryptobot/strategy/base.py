"""Strategy protocol.

Defines the interface that all strategies must implement.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from cryptobot.strategy.models import IndicatorReading


@runtime_checkable
class StrategyProtocol(Protocol):
    """Interface that all trading strategies must satisfy."""

    name: str

    def evaluate_enter(self, prices: Sequence[float]) -> bool:
        """Return True when a closed position should be opened."""
        ...

    def evaluate_exit(self, prices: Sequence[float]) -> bool:
        """Return True when an open position should be closed."""
        ...

    def current_readings(self, prices: Sequence[float]) -> IndicatorReading:
        """Return the indicator values the strategy is looking at."""
        ...
