"""Tests for the strategy evaluators and registry."""

import math

import pytest

import cryptobot.strategy.combined as combined_module
from cryptobot.errors import InsufficientDataError
from cryptobot.strategy.base import StrategyProtocol
from cryptobot.strategy.combined import CombinedStrategy
from cryptobot.strategy.models import IndicatorReading, StrategyConfig
from cryptobot.strategy.registry import STRATEGY_REGISTRY, get_strategy
from cryptobot.strategy.rsi_strategy import RsiStrategy


def _rising() -> list[float]:
    """15 closes rising from 10 to 24."""
    return [float(p) for p in range(10, 25)]


def _falling() -> list[float]:
    return [float(p) for p in range(24, 9, -1)]


def _config(**overrides) -> StrategyConfig:
    defaults = dict(
        rsi_period=14,
        sma_period=2,
        overbought=70.0,
        oversold=30.0,
        trend_strength=1.0,
    )
    defaults.update(overrides)
    return StrategyConfig(**defaults)


# ── Oscillator-only ──────────────────────────────────────────────────────


class TestRsiStrategy:
    def test_rising_series_exits_not_enters(self):
        strategy = RsiStrategy(_config())
        assert strategy.evaluate_enter(_rising()) is False
        assert strategy.evaluate_exit(_rising()) is True

    def test_falling_series_enters_not_exits(self):
        strategy = RsiStrategy(_config())
        assert strategy.evaluate_enter(_falling()) is True
        assert strategy.evaluate_exit(_falling()) is False

    def test_flat_series_never_signals(self):
        strategy = RsiStrategy(_config())
        flat = [3.0] * 15
        assert strategy.evaluate_enter(flat) is False
        assert strategy.evaluate_exit(flat) is False

    def test_readings_have_no_sma(self):
        reading = RsiStrategy(_config()).current_readings(_rising())
        assert reading == IndicatorReading(rsi=100.0, sma=None)

    def test_short_series_raises(self):
        with pytest.raises(InsufficientDataError):
            RsiStrategy(_config()).evaluate_enter([1.0, 2.0])

    def test_thresholds_are_strict(self):
        # RSI of a rising series is exactly 100; overbought=100 must not exit.
        strategy = RsiStrategy(_config(overbought=100.0))
        assert strategy.evaluate_exit(_rising()) is False


# ── Combined ─────────────────────────────────────────────────────────────


def _series_ending(*tail: float) -> list[float]:
    """16 closes whose last two values are *tail* (SMA(2) = their mean)."""
    return [100.0] * (16 - len(tail)) + list(tail)


class TestCombinedStrategy:
    def test_trend_strength_gate_blocks_entry(self, monkeypatch):
        """Price 0.5% above SMA with a 1.0% gate: no entry even if oversold."""
        monkeypatch.setattr(combined_module, "rsi", lambda prices, period: 20.0)
        strategy = CombinedStrategy(_config(trend_strength=1.0))
        prices = _series_ending(99.5, 100.5)  # SMA 100.0, last +0.5%
        assert strategy.evaluate_enter(prices) is False

    def test_strong_uptrend_and_oversold_enters(self, monkeypatch):
        monkeypatch.setattr(combined_module, "rsi", lambda prices, period: 20.0)
        strategy = CombinedStrategy(_config(trend_strength=1.0))
        prices = _series_ending(98.0, 102.0)  # SMA 100.0, last +2%
        assert strategy.evaluate_enter(prices) is True

    def test_uptrend_without_oversold_does_not_enter(self, monkeypatch):
        monkeypatch.setattr(combined_module, "rsi", lambda prices, period: 50.0)
        strategy = CombinedStrategy(_config())
        assert strategy.evaluate_enter(_series_ending(98.0, 102.0)) is False

    def test_strong_downtrend_and_overbought_exits(self, monkeypatch):
        monkeypatch.setattr(combined_module, "rsi", lambda prices, period: 80.0)
        strategy = CombinedStrategy(_config())
        prices = _series_ending(102.0, 98.0)  # SMA 100.0, last -2%
        assert strategy.evaluate_exit(prices) is True

    def test_weak_downtrend_does_not_exit(self, monkeypatch):
        monkeypatch.setattr(combined_module, "rsi", lambda prices, period: 80.0)
        strategy = CombinedStrategy(_config())
        assert strategy.evaluate_exit(_series_ending(100.5, 99.5)) is False

    def test_uptrend_never_exits(self, monkeypatch):
        monkeypatch.setattr(combined_module, "rsi", lambda prices, period: 80.0)
        strategy = CombinedStrategy(_config())
        assert strategy.evaluate_exit(_series_ending(98.0, 102.0)) is False

    def test_rising_series_unpatched(self):
        # Trend up but RSI 100: no entry; trend up so no exit either.
        strategy = CombinedStrategy(_config(sma_period=5))
        assert strategy.evaluate_enter(_rising()) is False
        assert strategy.evaluate_exit(_rising()) is False

    def test_readings_include_sma(self):
        reading = CombinedStrategy(_config(sma_period=5)).current_readings(_rising())
        assert reading.rsi == 100.0
        assert reading.sma == pytest.approx(22.0)

    def test_empty_series_raises(self):
        with pytest.raises(InsufficientDataError):
            CombinedStrategy(_config()).evaluate_enter([])

    def test_sma_period_longer_than_series_raises(self):
        strategy = CombinedStrategy(_config(sma_period=50))
        with pytest.raises(InsufficientDataError):
            strategy.evaluate_exit(_rising())

    def test_nan_rsi_never_signals(self):
        strategy = CombinedStrategy(_config())
        flat = [7.0] * 16
        assert math.isnan(strategy.current_readings(flat).rsi)
        assert strategy.evaluate_enter(flat) is False
        assert strategy.evaluate_exit(flat) is False


# ── Registry ─────────────────────────────────────────────────────────────


class TestRegistry:
    def test_registry_keys(self):
        assert set(STRATEGY_REGISTRY) == {"rsi", "combined"}

    def test_get_rsi_strategy(self):
        cfg = _config()
        strategy = get_strategy("rsi", cfg)
        assert isinstance(strategy, RsiStrategy)
        assert strategy.config is cfg

    def test_get_combined_strategy(self):
        assert isinstance(get_strategy("combined", _config()), CombinedStrategy)

    def test_strategies_satisfy_protocol(self):
        for name in STRATEGY_REGISTRY:
            assert isinstance(get_strategy(name, _config()), StrategyProtocol)

    def test_unknown_strategy_raises(self):
        with pytest.raises(KeyError, match="macd"):
            get_strategy("macd", _config())
