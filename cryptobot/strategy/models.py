"""Strategy data models — typed parameters and indicator readings."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StrategyConfig:
    """Strategy parameters, fixed at startup."""

    rsi_period: int = 14
    sma_period: int = 20
    overbought: float = 70.0
    oversold: float = 30.0
    trend_strength: float = 1.0  # minimum % distance from the SMA


@dataclass(frozen=True)
class IndicatorReading:
    """Indicator values computed for one cycle."""

    rsi: float
    sma: Optional[float] = None  # None when the strategy has no SMA leg
