"""Oscillator-only strategy: buy oversold, sell overbought."""

from collections.abc import Sequence

from cryptobot.strategy.indicators import rsi
from cryptobot.strategy.models import IndicatorReading, StrategyConfig


class RsiStrategy:
    """Enter when RSI drops below ``oversold``, exit above ``overbought``.

    Args:
        config: Strategy parameters. Only ``rsi_period`` and the two
            thresholds are used.
    """

    name = "rsi"

    def __init__(self, config: StrategyConfig) -> None:
        self._config = config

    @property
    def config(self) -> StrategyConfig:
        return self._config

    def evaluate_enter(self, prices: Sequence[float]) -> bool:
        return rsi(prices, self._config.rsi_period) < self._config.oversold

    def evaluate_exit(self, prices: Sequence[float]) -> bool:
        return rsi(prices, self._config.rsi_period) > self._config.overbought

    def current_readings(self, prices: Sequence[float]) -> IndicatorReading:
        return IndicatorReading(rsi=rsi(prices, self._config.rsi_period))
