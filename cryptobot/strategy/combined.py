"""Combined trend + oscillator strategy.

Entry needs price above its SMA by at least ``trend_strength`` percent
while RSI is oversold; exit is the mirror image (price below the SMA by
the same margin while RSI is overbought).
"""

from collections.abc import Sequence

from cryptobot.strategy.indicators import last_price, rsi, sma
from cryptobot.strategy.models import IndicatorReading, StrategyConfig


class CombinedStrategy:
    """RSI signals gated by SMA trend direction and strength.

    Args:
        config: Strategy parameters; RSI and SMA periods are independent.
    """

    name = "combined"

    def __init__(self, config: StrategyConfig) -> None:
        self._config = config

    @property
    def config(self) -> StrategyConfig:
        return self._config

    def evaluate_enter(self, prices: Sequence[float]) -> bool:
        """True on an up-trend of sufficient strength with RSI oversold."""
        current = last_price(prices)
        rsi_value = rsi(prices, self._config.rsi_period)
        sma_value = sma(prices, self._config.sma_period)

        is_trend_up = current > sma_value
        is_oversold = rsi_value < self._config.oversold
        strength = (current - sma_value) / sma_value * 100

        return is_trend_up and is_oversold and strength > self._config.trend_strength

    def evaluate_exit(self, prices: Sequence[float]) -> bool:
        """True on a down-trend of sufficient strength with RSI overbought."""
        current = last_price(prices)
        rsi_value = rsi(prices, self._config.rsi_period)
        sma_value = sma(prices, self._config.sma_period)

        is_trend_down = current < sma_value
        is_overbought = rsi_value > self._config.overbought
        strength = (sma_value - current) / sma_value * 100

        return is_trend_down and is_overbought and strength > self._config.trend_strength

    def current_readings(self, prices: Sequence[float]) -> IndicatorReading:
        return IndicatorReading(
            rsi=rsi(prices, self._config.rsi_period),
            sma=sma(prices, self._config.sma_period),
        )
